# -*- coding: utf-8 -*-
"""
Controlador de Notificacoes Temporizadas
========================================

Maquina de estados independente de UI para notificacoes do tipo
snackbar/toast: uma por vez (ou pilha limitada), com auto-dismiss por
timer, dismiss manual, acao e fila FIFO para o excedente.

Principais componentes:
- NotificationRecord: pedido imutavel de notificacao
- QueueStore: colecoes `current` + `pending` e suas transicoes
- NotificationController: API assincrona com timers e callbacks
- manager: controlador global com initialize/teardown
- config: perfis snackbar/toast via pydantic-settings

Uso basico:
    from notiqueue import NotificationController, DisplayMode

    controller = NotificationController(max_concurrent=3, mode=DisplayMode.STACK)

    notification_id = await controller.show(
        "Arquivo enviado",
        severity="success",
        duration="short",
        on_dismiss=lambda: print("fechou")
    )

    await controller.dismiss(notification_id)
    await controller.shutdown()
"""

from .models import (
    Severity,
    NotificationDuration,
    DisplayMode,
    NotificationState,
    RetireCause,
    DisplayDecision,
    RetireResult,
    NotificationRecord,
    EnqueueResult,
    RetireOutcome,
    build_record
)

from .queue_store import QueueStore

from .controller import NotificationController

from .exceptions import (
    NotificationQueueError,
    ConfigurationError,
    ControllerClosedError,
    ManagerNotInitializedError
)

from .config import (
    NotificationSettings,
    SnackbarSettings,
    ToastSettings,
    get_settings,
    reload_settings
)

from .logging_config import setup_logging, get_notification_logger

from . import manager
from .manager import notification_lifespan

__all__ = [
    # Models
    "Severity",
    "NotificationDuration",
    "DisplayMode",
    "NotificationState",
    "RetireCause",
    "DisplayDecision",
    "RetireResult",
    "NotificationRecord",
    "EnqueueResult",
    "RetireOutcome",
    "build_record",

    # Store / Controller
    "QueueStore",
    "NotificationController",

    # Exceptions
    "NotificationQueueError",
    "ConfigurationError",
    "ControllerClosedError",
    "ManagerNotInitializedError",

    # Config
    "NotificationSettings",
    "SnackbarSettings",
    "ToastSettings",
    "get_settings",
    "reload_settings",

    # Logging
    "setup_logging",
    "get_notification_logger",

    # Manager
    "manager",
    "notification_lifespan"
]

__version__ = "1.0.0"
