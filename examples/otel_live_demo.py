"""spanview end-to-end example: live OpenTelemetry timeline.

Installs a TimelineSpanProcessor on an SDK TracerProvider, emits a small
request trace, and lets the collector render it once the trace goes quiet.
"""

from __future__ import annotations

import sys
import time


def main() -> None:
    try:
        from opentelemetry.sdk.trace import TracerProvider  # type: ignore[import-untyped]
    except ImportError:
        print("opentelemetry-sdk is required. Install with: pip install 'spanview[otel]'")
        sys.exit(1)

    from spanview.trace.otel import install

    provider = TracerProvider()
    install(provider)
    tracer = provider.get_tracer("spanview-demo")

    with tracer.start_as_current_span("GET /orders", attributes={"http.method": "GET", "http.route": "/orders"}):
        with tracer.start_as_current_span("auth.verify"):
            time.sleep(0.004)
        with tracer.start_as_current_span("db.query orders", attributes={"db.system": "postgresql"}):
            time.sleep(0.030)
        with tracer.start_as_current_span("serialize"):
            time.sleep(0.002)

    # render timer fires shortly after the last span ends
    time.sleep(0.3)
    provider.shutdown()


if __name__ == "__main__":
    main()
