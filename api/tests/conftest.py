import os

# Tests never export spans; keep the tracer provider untouched.
os.environ.setdefault("IF_OTEL_ENABLED", "false")
