#!/usr/bin/env python
"""
Storefront API development server runner.
"""

import sys
from pathlib import Path

# Add the project root to the path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

if __name__ == "__main__":
    import uvicorn
    from storefront.core.config import settings

    print("=" * 60)
    print(f"Starting {settings.STORE_NAME} Storefront API")
    print("=" * 60)
    print(f"Server:      {settings.SERVER_HOST}:{settings.SERVER_PORT}")
    print(f"Environment: {settings.ENVIRONMENT}")
    print(f"Email:       {settings.EMAIL_BACKEND}")
    print(f"Docs URL:    http://{settings.SERVER_HOST}:{settings.SERVER_PORT}/api/docs")
    print("=" * 60)

    # Import string so reload works
    uvicorn.run(
        "storefront.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
