"""
ASGI entrypoint: expose `app` pour les process managers / déploiements
(ex: `uvicorn curadoria.asgi:app`). Toute la configuration est centralisée
dans curadoria.app_setup.factory.
"""

from curadoria.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "curadoria.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
