# Root conftest: puts the repository root on sys.path so tests can import
# ``whyslow`` and ``tests.factories`` without an install.
