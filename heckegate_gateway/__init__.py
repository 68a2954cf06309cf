"""
HeckeGate HTTP gateway.

FastAPI service over the heckegate core: /verify, /reduce, /replay,
catalog inspection and webhook subscriptions. Run with:

    uvicorn heckegate_gateway.main:app
"""
