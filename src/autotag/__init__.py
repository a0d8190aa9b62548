"""autotag - keeps plain words in a markdown vault in sync with its #tags.

Collects the distinct #tags used across a vault of notes and rewrites
untagged occurrences of each tag's word into tagged form, both in stored
notes and in live editor buffers (debounced so a word is never rewritten
mid-keystroke).

Package entry point. Exports the version string only; functional modules
are imported lazily by main.py to keep startup fast.
"""

__version__ = "0.1.0"
