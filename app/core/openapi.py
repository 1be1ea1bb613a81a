"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

custom_openapi(app) modifie le schéma généré par FastAPI pour :

ajouter un titre, une description détaillée,

documenter le canal temps réel (non décrit par OpenAPI),

centraliser la personnalisation du Swagger.
"""

from fastapi.openapi.utils import get_openapi

def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=(
            "API de suivi de tâches FastAPI + SQLite, avec diffusion temps réel.\n\n"
            "### Conventions\n"
            "- Toutes les heures sont en UTC.\n"
            "- Les erreurs ont la forme `{\"error\": \"...\"}`.\n"
            "- Statuts : `pending`, `in_progress`, `completed`, `cancelled`.\n\n"
            "### Temps réel\n"
            "WebSocket `/ws` : messages `{\"event\": ..., \"data\": ...}` avec "
            "`initialTasks` (à la connexion), `newTask`, `taskUpdated`, `taskDeleted`.\n"
        ),
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
