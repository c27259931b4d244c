"""Core domain package for carscope.

Core contains filter encoding, deduplication, the tracked-search registry and
the polling loop without any Telegram, HTTP or storage-specific code, keeping
the business logic portable.
"""
