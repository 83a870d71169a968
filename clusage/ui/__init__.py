"""
Minimal full-screen terminal UI framework used by the history viewer.

- :mod:`renderer`: double-buffered painting and ANSI-aware text helpers
- :mod:`keyboard`: raw key capture and escape-sequence decoding
- :mod:`component`: component tree, lists and grids
- :mod:`app`: the component stack and event loop
"""
