"""
Startup script for the QA Agent backend.
Run this instead of 'uvicorn main:app' on Windows.
"""

import sys
import os
import asyncio

# Force unbuffered output
os.environ['PYTHONUNBUFFERED'] = '1'

# Set Windows event loop policy FIRST, before any imports
if sys.platform == 'win32':
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

if __name__ == "__main__":
    import uvicorn

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    print(f"\n Starting QA Agent Backend Server on http://{host}:{port}", flush=True)
    print(f" API Docs available at: http://{host}:{port}/docs", flush=True)

    # reload=False keeps logs in this terminal
    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=False,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        access_log=True
    )
