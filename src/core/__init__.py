"""Core domain package for flatwatch.

Core contains address parsing, building resolution, listing deduplication and
the dispatch loop without any Telegram, HTTP or storage-specific code,
keeping the business logic portable.
"""
