"""
➡️ But : Diffuser les changements de tâches à tous les clients temps réel connectés.

Subscription : une boîte d'envoi (outbox) par client, bornée, jamais bloquante côté émetteur.

TaskBroadcaster : registre des abonnés + publish(event, data) vers chacun d'eux.

Format des messages : {"event": "<nom>", "data": <payload>}.

🔹 Avantages :

La requête HTTP qui publie n'attend jamais un client lent ou déconnecté.

Le registre peut changer pendant une diffusion : on itère sur une copie.
"""

import asyncio
import uuid
from collections import deque
from typing import Any, Deque, Dict

from loguru import logger

INITIAL_TASKS = "initialTasks"
NEW_TASK = "newTask"
TASK_UPDATED = "taskUpdated"
TASK_DELETED = "taskDeleted"


def make_message(event: str, data: Any) -> Dict[str, Any]:
    return {"event": event, "data": data}


class SubscriptionClosed(Exception):
    """La souscription a été fermée (client trop lent ou retiré)."""


class Subscription:
    def __init__(self, max_pending: int = 256):
        self.id = uuid.uuid4().hex
        self.max_pending = max_pending
        self.closed = False
        self._outbox: Deque[Dict[str, Any]] = deque()
        self._ready = asyncio.Event()

    @property
    def pending(self) -> int:
        return len(self._outbox)

    def push(self, message: Dict[str, Any]) -> bool:
        """Ajoute un message en fin de file. False si la file est pleine ou fermée."""
        if self.closed or len(self._outbox) >= self.max_pending:
            return False
        self._outbox.append(message)
        self._ready.set()
        return True

    def push_first(self, message: Dict[str, Any]) -> None:
        """Place un message en tête de file (snapshot initial)."""
        if self.closed:
            return
        self._outbox.appendleft(message)
        self._ready.set()

    def close(self) -> None:
        self.closed = True
        self._outbox.clear()
        self._ready.set()

    async def next(self) -> Dict[str, Any]:
        while not self._outbox:
            if self.closed:
                raise SubscriptionClosed(self.id)
            self._ready.clear()
            await self._ready.wait()
        return self._outbox.popleft()


class TaskBroadcaster:
    def __init__(self, max_pending: int = 256):
        self.max_pending = max_pending
        self._subscribers: Dict[str, Subscription] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription:
        subscription = Subscription(max_pending=self.max_pending)
        self._subscribers[subscription.id] = subscription
        logger.info("Client subscribed id={} (total: {})", subscription.id, self.subscriber_count)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if self._subscribers.pop(subscription.id, None) is not None:
            logger.info(
                "Client unsubscribed id={} (total: {})", subscription.id, self.subscriber_count
            )

    def publish(self, event: str, data: Any) -> int:
        """
        Envoie l'événement à chaque abonné courant. Ne bloque pas et ne lève pas :
        un abonné en retard est retiré du registre.
        Retourne le nombre d'abonnés ayant reçu le message.
        """
        message = make_message(event, data)
        delivered = 0
        for subscription in list(self._subscribers.values()):
            if subscription.push(message):
                delivered += 1
            else:
                logger.warning(
                    "Dropping lagging client id={} ({} pending)",
                    subscription.id,
                    subscription.pending,
                )
                subscription.close()
                self.unsubscribe(subscription)
        logger.debug("Broadcast {} to {} client(s)", event, delivered)
        return delivered
