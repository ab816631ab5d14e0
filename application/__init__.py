"""
Application Layer for the Progress API.

This package contains:
- ports/: Abstract repository interfaces (what the use cases need)
- use_cases/: Progress operations returning result envelopes
- sync/: Client-side optimistic updates, retry scheduling and conflict
  resolution
"""
