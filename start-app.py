import argparse

import uvicorn

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the car rental API.")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host address to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port number to bind to")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")
    parser.add_argument("--log-level", type=str, default="info", help="Uvicorn log level")
    args = parser.parse_args()

    uvicorn.run("main:app", host=args.host, port=args.port, reload=not args.no_reload, log_level=args.log_level)
