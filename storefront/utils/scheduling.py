"""
Primitive de debounce explicite (ex: saisie de recherche).

Contrat d'annulation: chaque call() annule l'appel en attente précédent;
cancel() annule sans exécuter; flush() exécute immédiatement l'appel en attente.
Le propriétaire du Debouncer est responsable de son cycle de vie.
"""
import threading
from typing import Any, Callable, Optional, Tuple


class Debouncer:
    def __init__(self, func: Callable[..., Any], wait: float = 0.3):
        self.func = func
        self.wait = wait
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._args: Tuple[Any, ...] = ()
        self._kwargs: dict = {}

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def call(self, *args: Any, **kwargs: Any) -> threading.Timer:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._args, self._kwargs = args, kwargs
            timer = threading.Timer(self.wait, self._fire)
            timer.daemon = True
            self._timer = timer
            timer.start()
            return timer

    def cancel(self) -> bool:
        """Retourne True si un appel en attente a été annulé."""
        with self._lock:
            if self._timer is None:
                return False
            self._timer.cancel()
            self._timer = None
            return True

    def flush(self) -> Any:
        with self._lock:
            if self._timer is None:
                return None
            self._timer.cancel()
            self._timer = None
            args, kwargs = self._args, self._kwargs
        return self.func(*args, **kwargs)

    def _fire(self) -> None:
        with self._lock:
            # Un call() ou cancel() concurrent a pu remplacer le timer courant
            if self._timer is None or threading.current_thread() is not self._timer:
                return
            self._timer = None
            args, kwargs = self._args, self._kwargs
        self.func(*args, **kwargs)
