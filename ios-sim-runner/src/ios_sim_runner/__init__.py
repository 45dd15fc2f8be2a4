"""iOS simulator test runner.

Provisions a throwaway simulator, runs an XCTest bundle on it (directly through
the xctest agent, or inside a host app through a generated Xcode project) and
always shuts down and deletes the simulator afterwards.
"""

__all__ = [
    "catalog",
    "cli",
    "runtime",
]

__version__ = "0.1.0"
