"""
Blogstack Backend — Services Layer
=====================================

What:  Business rules between the HTTP routes and the database/storage.

Service Inventory:
    - AuthService:  signup, login, session token issue and validation
    - BlogService:  blog CRUD, ownership checks, image replacement
    - FileService:  upload validation and storage orchestration
    - storage/:     StorageBackend implementations (local, S3, Cloudinary)

Services raise app.exceptions errors and never build HTTP responses;
main.py maps the errors onto status codes.
"""
