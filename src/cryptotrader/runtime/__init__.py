"""Runtime instrumentation."""
