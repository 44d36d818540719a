# -*- coding: utf-8 -*-
"""
Gerenciador Global de Notificacoes
==================================

Controlador padrao do processo, com ciclo de vida explicito
(initialize/teardown). Pode receber um controlador pronto, o que
permite injetar instancias isoladas em testes.

Uso:
    from notiqueue import manager

    manager.initialize()                 # usa get_settings()
    await manager.show_success("Salvo")

    # Fire-and-forget a partir de codigo sincrono
    manager.launch(lambda c: c.show_info("Botao clicado"))

    await manager.teardown()

Ou, em uma aplicacao asyncio:

    async with notification_lifespan() as controller:
        await controller.show("Ola!")
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional, Set

from .config import NotificationSettings, get_settings
from .controller import NotificationController
from .exceptions import ManagerNotInitializedError
from .logging_config import setup_logging
from .models import Callback, DurationSpec, NotificationDuration, Severity

logger = logging.getLogger(__name__)

# =============================================================================
# INSTANCIA GLOBAL
# =============================================================================

_controller: Optional[NotificationController] = None

# Tasks criadas por launch(); mantidas ate terminarem
_launched: Set[asyncio.Task] = set()


def initialize(
    controller: Optional[NotificationController] = None,
    settings: Optional[NotificationSettings] = None
) -> NotificationController:
    """
    Define o controlador global.

    Args:
        controller: Controlador pronto (tem prioridade sobre settings)
        settings: Configuracoes para criar um controlador novo
            (padrao: get_settings())

    Returns:
        O controlador global
    """
    global _controller

    if controller is None:
        controller = NotificationController.from_settings(settings or get_settings())

    if _controller is not None and _controller is not controller:
        logger.warning("[Notifications] Manager reinicializado; controlador anterior descartado sem shutdown")

    _controller = controller
    logger.info("[Notifications] Manager inicializado")
    return controller


async def teardown() -> None:
    """Encerra e remove o controlador global (no-op se nao inicializado)"""
    global _controller

    controller = _controller
    _controller = None

    # Quando chamado de dentro de launch(), a propria task fica de fora
    current = asyncio.current_task()
    pending = [task for task in _launched if task is not current]
    try:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
    finally:
        if controller is not None:
            await controller.shutdown()
            logger.info("[Notifications] Manager encerrado")


def clear() -> None:
    """Remove o controlador global sem encerra-lo"""
    global _controller
    _controller = None


def is_initialized() -> bool:
    return _controller is not None


def get_controller() -> NotificationController:
    """
    Retorna o controlador global.

    Raises:
        ManagerNotInitializedError: Se initialize() nao foi chamado
    """
    if _controller is None:
        raise ManagerNotInitializedError()
    return _controller


def launch(block: Callable[[NotificationController], Awaitable]) -> asyncio.Task:
    """
    Agenda `block(controller)` como task fire-and-forget no loop atual.

    Deve ser chamado com um event loop rodando.

    Raises:
        ManagerNotInitializedError: Se initialize() nao foi chamado
    """
    controller = get_controller()

    async def _run():
        try:
            await block(controller)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"[Notifications] Erro em tarefa lancada: {e}")

    task = asyncio.get_running_loop().create_task(_run())
    _launched.add(task)
    task.add_done_callback(_launched.discard)
    return task


@asynccontextmanager
async def notification_lifespan(
    controller: Optional[NotificationController] = None,
    settings: Optional[NotificationSettings] = None,
    configure_logging: bool = False
):
    """
    Context manager assincrono: initialize() na entrada, teardown() na saida.

    Args:
        controller: Controlador pronto (opcional)
        settings: Configuracoes (padrao: get_settings())
        configure_logging: Chama setup_logging() com LOG_LEVEL/LOG_FORMAT
    """
    if configure_logging:
        active = settings or get_settings()
        setup_logging(level=active.LOG_LEVEL, json_format=active.json_logging())

    instance = initialize(controller=controller, settings=settings)
    try:
        yield instance
    finally:
        await teardown()


# =============================================================================
# ATALHOS
# =============================================================================

async def show(
    message: str,
    *,
    severity: Severity = Severity.DEFAULT,
    action_label: Optional[str] = None,
    duration: Optional[DurationSpec] = None,
    dismissible: bool = True,
    on_action: Optional[Callback] = None,
    on_dismiss: Optional[Callback] = None
) -> str:
    """Exibe notificacao no controlador global"""
    return await get_controller().show(
        message,
        severity=severity,
        action_label=action_label,
        duration=duration,
        dismissible=dismissible,
        on_action=on_action,
        on_dismiss=on_dismiss
    )


async def show_success(message: str, duration: DurationSpec = NotificationDuration.SHORT,
                       action_label: Optional[str] = None, on_action: Optional[Callback] = None) -> str:
    return await get_controller().show_success(message, duration=duration,
                                               action_label=action_label, on_action=on_action)


async def show_info(message: str, duration: DurationSpec = NotificationDuration.SHORT,
                    action_label: Optional[str] = None, on_action: Optional[Callback] = None) -> str:
    return await get_controller().show_info(message, duration=duration,
                                            action_label=action_label, on_action=on_action)


async def show_warning(message: str, duration: DurationSpec = NotificationDuration.LONG,
                       action_label: Optional[str] = None, on_action: Optional[Callback] = None) -> str:
    return await get_controller().show_warning(message, duration=duration,
                                               action_label=action_label, on_action=on_action)


async def show_error(message: str, duration: DurationSpec = NotificationDuration.LONG,
                     action_label: Optional[str] = None, on_action: Optional[Callback] = None) -> str:
    return await get_controller().show_error(message, duration=duration,
                                             action_label=action_label, on_action=on_action)


async def show_error_from_exception(exception: BaseException, message: Optional[str] = None,
                                    action_label: Optional[str] = None,
                                    on_action: Optional[Callback] = None) -> str:
    return await get_controller().show_error_from_exception(
        exception, message=message, action_label=action_label, on_action=on_action
    )


async def dismiss(notification_id: str) -> bool:
    return await get_controller().dismiss(notification_id)


async def dismiss_all() -> int:
    return await get_controller().dismiss_all()
