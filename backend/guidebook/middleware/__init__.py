# Middleware package init
"""
Guidebook — Middleware Package
===============================

What:  Cross-cutting concerns applied to every request.
Why:   Middleware handles functionality needed across all routes without
       duplicating code in each route handler.

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [Timing] → [Maintenance]
            → [Rate Limit] → [API Key] → [GZip] → [CORS] → Route Handler

    1. Request ID first: every later layer (and every error body) can use it
    2. Logging and Timing wrap everything below, including rejections
    3. Maintenance, Rate Limit and API Key may terminate the request
       (503, 429, 401) without calling the next layer

    The order is reversed for responses:
    Response ← [Request ID] ← [Logging] ← [Timing] ← ... ← Route Handler
"""
