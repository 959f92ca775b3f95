#!/usr/bin/env python3
"""
Script to run the Books API server.
"""

import uvicorn

from books_api.config import config
from utilities.config import config as store_config


def main():
    """Run the API server."""
    print("Starting Books API Server")
    print(f"Host: {config.host}")
    print(f"Port: {config.port}")
    print(f"Debug: {store_config.debug}")
    print(f"Database: {store_config.mongodb_database}")
    print(f"Collections: {store_config.books_collection_name}, {store_config.users_collection_name}")
    print("=" * 50)

    uvicorn.run(
        "books_api.main:app",
        host=config.host,
        port=config.port,
        reload=store_config.debug,
        log_level=config.log_level.lower(),
        access_log=True
    )


if __name__ == "__main__":
    main()
