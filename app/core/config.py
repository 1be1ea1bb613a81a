"""
➡️ But : Centraliser tous les paramètres configurables (nom d’app, chemin DB, port, CORS, logs…)

Utilise pydantic-settings pour charger automatiquement les variables d’environnement (.env, variables système…).

Fournit un objet settings unique, que tu importes ailleurs :

from app.core.config import settings
print(settings.APP_NAME)


🔹 Avantages :

Plus propre que des constantes éparpillées dans le code.

Facilite le passage entre environnements (dev / prod / test).
"""

from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # -----------------------------
    # App
    # -----------------------------
    APP_NAME: str = "Task-Board"
    ENV: str = "dev"  # dev | prod | test
    HOST: str = "127.0.0.1"
    PORT: int = 3000

    # Préfixe des routes REST ("" → /tasks, "/api/v1" → /api/v1/tasks)
    API_PREFIX: str = ""
    CORS_ORIGINS: List[str] = ["*"]

    # Dossier du frontend statique (monté sur "/" s'il existe)
    STATIC_DIR: Optional[str] = None

    # -----------------------------
    # DB
    # -----------------------------
    SQLITE_PATH: str = "tasks.db"  # fichier SQLite
    # Si tu veux forcer une URL différente (ex: Postgres), définis DATABASE_URL dans l'env.
    DATABASE_URL: Optional[str] = None
    DB_ECHO: Optional[bool] = None  # auto selon ENV si None

    # -----------------------------
    # Logs / temps réel
    # -----------------------------
    LOG_LEVEL: str = "INFO"
    # Nombre max de messages en attente par client WebSocket avant déconnexion
    SUBSCRIBER_QUEUE_SIZE: int = 256

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    # -----------------------------
    # Post-process values
    # -----------------------------
    def model_post_init(self, __context): # appelée automatiquement
        # DATABASE_URL par défaut depuis SQLITE_PATH si non fourni
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")

        # echo SQL seulement en dev pour ne pas polluer les logs en prod
        if self.DB_ECHO is None:
            object.__setattr__(self, "DB_ECHO", self.ENV == "dev")


# Instance globale importable partout
settings = Settings()
