"""
# Tech Blog API

FastAPI + MongoDB backend for a technology blog.

## Architecture Overview

```
┌─────────────────────────────────────────────────────────────┐
│                    Tech Blog API                             │
├─────────────────────────────────────────────────────────────┤
│  routes/      HTTP surface, auth dependencies, envelopes     │
│  managers/    Post, category, comment and upload operations  │
│  services/    Pure lifecycle rules and query building        │
│  models/      Pydantic request/response models               │
│  database/    Motor client, collections and indexes          │
│  utils/       Errors, request logging, rate limiting         │
└─────────────────────────────────────────────────────────────┘
```

Entry points:
- `tech_blog_api.main:app` - the ASGI application.
- `tech-blog-seed` - loads sample categories and posts (`tech_blog_api.cli.seed_cli`).
"""

__version__ = "1.0.0"
