"""
Blogstack Backend — API Routes Package
=========================================

What:  HTTP route handlers. Each module owns one resource.

Route Inventory:
    - auth.py:     POST /api/auth/signup, POST /api/auth/login, GET /api/auth/user
    - blogs.py:    GET/POST /api/blogs, GET/PUT/DELETE /api/blogs/{id}
    - uploads.py:  GET  /uploads/{path}   (local storage backend only)
    - health.py:   GET  /health

Routes stay thin: parse the request, call a service, shape the response.
Business rules live in app.services.
"""
