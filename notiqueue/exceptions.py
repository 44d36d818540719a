# -*- coding: utf-8 -*-
"""
Excecoes do controlador de notificacoes.

Corridas entre timers e dismiss manual NAO sao erros (viram no-op);
aqui ficam apenas os erros de programacao.
"""


class NotificationQueueError(Exception):
    """Base para todos os erros do pacote."""
    pass


class ConfigurationError(NotificationQueueError, ValueError):
    """Levantada quando o controlador recebe uma capacidade invalida."""

    def __init__(self, field_name: str, value):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid {field_name}: {value!r} (must be >= 1)")


class ControllerClosedError(NotificationQueueError):
    """Levantada quando show() e chamado apos shutdown()."""
    pass


class ManagerNotInitializedError(NotificationQueueError, RuntimeError):
    """Levantada quando o manager global e usado antes de initialize()."""

    def __init__(self):
        super().__init__(
            "Notification manager is not initialized. "
            "Call notiqueue.manager.initialize() (or use notification_lifespan) first."
        )
