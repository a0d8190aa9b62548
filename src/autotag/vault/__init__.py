"""Vault access — the note store and the filesystem watcher.

NoteStore reads, writes and extracts tags from notes on disk;
VaultWatcher turns watchdog filesystem events into tagger events.
"""
