#!/usr/bin/env python3
"""
Run the outreach CRM API with uvicorn.
"""

import argparse

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Run the outreach CRM API server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, default=8000, help="Port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    uvicorn.run("outreach_crm.api.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
