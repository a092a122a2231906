"""
Server modules for Ursus Map application.

This package contains FastAPI router modules for the catalog and map pages,
the dataset files and the WebSocket map sessions.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""
