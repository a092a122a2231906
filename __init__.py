"""
Ursus Map application.

A FastAPI-powered site of U.S. bear species pages, each with a 3D satellite
map of clustered GBIF sighting hotspots.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""
