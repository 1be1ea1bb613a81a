"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_task_service() : renvoie le TaskService construit au démarrage (app.state).

get_ws_task_service() : même chose pour les routes WebSocket.

🔹 Avantages :

Routes plus propres (pas d'état global importé).

Facile à remplacer dans les tests (app.dependency_overrides).
"""

from fastapi import Request, WebSocket

from app.features.tasks.services import TaskService


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


def get_ws_task_service(websocket: WebSocket) -> TaskService:
    return websocket.app.state.task_service
