"""
➡️ But : Configurer la base SQLite et gérer les sessions de base de données.

build_engine() : connexion à la base (sqlite:///tasks.db par défaut).

init_db() : crée les tables à partir des modèles SQLModel.

open_session() : ouvre une session sur un engine ; l'appelant la ferme (with ...).

🔹 Avantages :

Un seul endroit pour gérer les connexions DB.

Pas d'engine global : c'est le TaskStore qui possède le sien (testable avec une base temporaire).
"""

from typing import Dict, Any
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.engine import Engine

# Import all models for creating all tables
from app.db.models.tasks import Task  # noqa: F401


def build_engine(url: str, *, echo: bool = False) -> Engine:
    assert url, "DATABASE_URL must be set"

    is_sqlite = url.startswith("sqlite:")

    connect_args: Dict[str, Any] = {}
    if is_sqlite:
        # Requis pour SQLite quand utilisé dans un app serveur (multi-threads)
        connect_args["check_same_thread"] = False
        # Attente max (s) quand un autre writer tient le verrou
        connect_args["timeout"] = 30

    engine = create_engine(
        url,
        echo=echo,
        connect_args=connect_args,
        pool_pre_ping=not is_sqlite,  # ping utile pour Postgres/MySQL ; inutile pour SQLite
    )
    return engine


def init_db(engine: Engine) -> None:
    """
    Crée les tables si elles n'existent pas (idempotent).
    En prod avec Alembic, préfère des migrations.
    """
    SQLModel.metadata.create_all(engine)


def open_session(engine: Engine) -> Session:
    # expire_on_commit=False : les objets restent lisibles après fermeture de la session
    return Session(engine, expire_on_commit=False)
