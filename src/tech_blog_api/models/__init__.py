"""
# Data Models Package

Pydantic models that define the API contracts of the blog.

- **`common`**: The response envelope, camelCase base model and ObjectId helpers.
- **`post_models`**: Post create/update requests and list/detail responses.
- **`category_models`**: Category requests and the nested category response.
- **`comment_models`**: Comment submission with sanitization, and threaded responses.
- **`upload_models`**: Upload types and stored-file descriptions.
- **`contact_models`**: The contact form message.

Request models use `extra="forbid"` so unknown fields are rejected rather than stored.
Response models are built from raw Mongo documents through `CamelModel.render()`.
"""
