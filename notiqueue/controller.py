# -*- coding: utf-8 -*-
"""
Controlador do Ciclo de Vida de Notificacoes
============================================

Orquestra show -> timer de auto-dismiss -> dismiss -> promocao do proximo:
- Serializa todas as mutacoes da fila com um asyncio.Lock
- Arma um timer cancelavel (task asyncio) para duracoes finitas
- Garante que on_action/on_dismiss disparam no maximo uma vez por registro
- IDs desconhecidos ou ja retirados sao no-op (corridas de timer sao esperadas)

Uso:
    from notiqueue import NotificationController, DisplayMode

    controller = NotificationController(max_concurrent=1, mode=DisplayMode.QUEUE)

    notification_id = await controller.show(
        "Item removido",
        action_label="Desfazer",
        on_action=undo_delete
    )

    await controller.perform_action(notification_id)
"""

import asyncio
import inspect
import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .exceptions import ControllerClosedError
from .logging_config import get_notification_logger
from .models import (
    Callback,
    DisplayDecision,
    DisplayMode,
    DurationSpec,
    NotificationDuration,
    NotificationRecord,
    NotificationState,
    RetireCause,
    Severity,
    build_record,
)
from .queue_store import QueueStore

logger = logging.getLogger(__name__)


class NotificationController:
    """
    Controlador de notificacoes (snackbar/toast) independente de UI.

    Responsabilidades:
    - Exibir ou enfileirar pedidos (modo QUEUE) ou empilhar removendo o
      mais antigo (modo STACK)
    - Auto-dismiss por timer
    - Dismiss manual, acao, dismiss de todos e shutdown
    - Estatisticas e listeners de mudanca

    Configuracoes:
    - RETIRED_HISTORY_LIMIT: Quantos IDs retirados sao lembrados para state_of()
    """

    RETIRED_HISTORY_LIMIT = 1000

    def __init__(
        self,
        max_concurrent: int = 1,
        mode: DisplayMode = DisplayMode.QUEUE,
        short_duration: float = 4.0,
        long_duration: float = 10.0,
        notify_pending_on_clear: bool = False
    ):
        """
        Inicializa o controlador.

        Args:
            max_concurrent: Slots de exibicao simultanea (>= 1)
            mode: QUEUE (snackbar) ou STACK (toast)
            short_duration: Segundos de NotificationDuration.SHORT
            long_duration: Segundos de NotificationDuration.LONG
            notify_pending_on_clear: Se dismiss_all/shutdown disparam
                on_dismiss de registros que nunca foram exibidos

        Raises:
            ConfigurationError: Se max_concurrent <= 0
        """
        self._store = QueueStore(max_concurrent=max_concurrent, mode=mode)
        self.short_duration = float(short_duration)
        self.long_duration = float(long_duration)
        self.notify_pending_on_clear = notify_pending_on_clear

        # Lock unico: toda mutacao da fila passa por aqui
        self._lock = asyncio.Lock()

        # Timers de auto-dismiss: notification_id -> Task
        self._timers: Dict[str, asyncio.Task] = {}

        # Registros cujos callbacks estao em execucao
        self._retiring: Set[str] = set()

        # Tasks de callbacks em andamento (referencia forte ate terminarem)
        self._callback_tasks: Set[asyncio.Task] = set()

        # Historico limitado de retirados: notification_id -> causa
        self._retired: "OrderedDict[str, RetireCause]" = OrderedDict()

        self._closed = False

        # Estatisticas
        self._stats: Dict[str, Any] = {
            "total_shown": 0,
            "total_displayed": 0,
            "total_queued": 0,
            "total_evicted": 0,
            "total_promoted": 0,
            "callback_errors": 0,
            "retired_by_cause": {cause.value: 0 for cause in RetireCause},
        }

        # Listeners
        self._on_change_callbacks: List[Callable[[Dict[str, Any]], None]] = []
        self._on_callback_error_callbacks: List[Callable[[str, Exception], None]] = []

        logger.info(
            f"[Notifications] Controller inicializado "
            f"(mode={self._store.mode.value}, max_concurrent={self._store.max_concurrent})"
        )

    @classmethod
    def from_settings(cls, settings) -> "NotificationController":
        """Cria um controlador a partir de NotificationSettings"""
        return cls(
            max_concurrent=settings.MAX_CONCURRENT,
            mode=settings.MODE,
            short_duration=settings.SHORT_DURATION,
            long_duration=settings.LONG_DURATION,
            notify_pending_on_clear=settings.NOTIFY_PENDING_ON_CLEAR
        )

    # =========================================================================
    # PROPRIEDADES
    # =========================================================================

    @property
    def mode(self) -> DisplayMode:
        return self._store.mode

    @property
    def max_concurrent(self) -> int:
        return self._store.max_concurrent

    @property
    def is_closed(self) -> bool:
        return self._closed

    # =========================================================================
    # EXIBICAO
    # =========================================================================

    async def show(
        self,
        message: str,
        *,
        severity: Severity = Severity.DEFAULT,
        action_label: Optional[str] = None,
        duration: Optional[DurationSpec] = None,
        dismissible: bool = True,
        on_action: Optional[Callback] = None,
        on_dismiss: Optional[Callback] = None
    ) -> str:
        """
        Exibe (ou enfileira) uma notificacao.

        Retorna imediatamente; o desfecho (acao ou dismiss) so e observavel
        pelos callbacks on_action/on_dismiss.

        Args:
            message: Texto da notificacao
            severity: Severidade
            action_label: Rotulo da acao (opcional)
            duration: SHORT, LONG, INDEFINITE ou segundos. Sem valor: no modo
                QUEUE uma notificacao com acao fica INDEFINITE, senao SHORT
            dismissible: Permite dismiss manual (gesto do usuario)
            on_action: Callback da acao
            on_dismiss: Callback de dismiss

        Returns:
            ID da notificacao

        Raises:
            ControllerClosedError: Se o controlador ja foi encerrado
        """
        if self._closed:
            raise ControllerClosedError("Cannot show notifications after shutdown()")

        record = build_record(
            message=message,
            severity=severity,
            action_label=action_label,
            duration=duration,
            dismissible=dismissible,
            on_action=on_action,
            on_dismiss=on_dismiss,
            default_duration=self._default_duration(action_label)
        )
        log = get_notification_logger(record.id, __name__)

        async with self._lock:
            if self._closed:
                raise ControllerClosedError("Cannot show notifications after shutdown()")

            result = self._store.enqueue_or_display(record)
            self._stats["total_shown"] += 1

            evicted = result.evicted
            if evicted is not None:
                self._cancel_timer(evicted.id)
                self._retiring.add(evicted.id)
                self._stats["total_evicted"] += 1

            if result.displayed:
                self._stats["total_displayed"] += 1
                self._arm_timer(record)
            else:
                self._stats["total_queued"] += 1

        if result.decision == DisplayDecision.QUEUED:
            log.debug(f"[Notifications] {record.id} enfileirada")
        else:
            log.info(f"[Notifications] {record.id} exibida ({result.decision.value})")

        if evicted is not None:
            await self._fire_retirements([(evicted, RetireCause.EVICTED)])

        self._notify_change()
        return record.id

    async def show_success(self, message: str, *, duration: DurationSpec = NotificationDuration.SHORT,
                           action_label: Optional[str] = None, on_action: Optional[Callback] = None) -> str:
        """Exibe notificacao de sucesso"""
        return await self.show(message, severity=Severity.SUCCESS, duration=duration,
                               action_label=action_label, on_action=on_action)

    async def show_info(self, message: str, *, duration: DurationSpec = NotificationDuration.SHORT,
                        action_label: Optional[str] = None, on_action: Optional[Callback] = None) -> str:
        """Exibe notificacao informativa"""
        return await self.show(message, severity=Severity.INFO, duration=duration,
                               action_label=action_label, on_action=on_action)

    async def show_warning(self, message: str, *, duration: DurationSpec = NotificationDuration.LONG,
                           action_label: Optional[str] = None, on_action: Optional[Callback] = None) -> str:
        """Exibe notificacao de alerta"""
        return await self.show(message, severity=Severity.WARNING, duration=duration,
                               action_label=action_label, on_action=on_action)

    async def show_error(self, message: str, *, duration: DurationSpec = NotificationDuration.LONG,
                         action_label: Optional[str] = None, on_action: Optional[Callback] = None) -> str:
        """Exibe notificacao de erro"""
        return await self.show(message, severity=Severity.ERROR, duration=duration,
                               action_label=action_label, on_action=on_action)

    async def show_error_from_exception(
        self,
        exception: BaseException,
        message: Optional[str] = None,
        action_label: Optional[str] = None,
        on_action: Optional[Callback] = None
    ) -> str:
        """
        Exibe notificacao de erro a partir de uma excecao.

        A mensagem e `message` quando informada (mesmo vazia); sem ela,
        str(exception) ou "An error occurred".
        """
        error_message = message if message is not None else (str(exception) or "An error occurred")
        return await self.show_error(error_message, action_label=action_label, on_action=on_action)

    # =========================================================================
    # RETIRADA
    # =========================================================================

    async def dismiss(self, notification_id: str, *, manual: bool = False) -> bool:
        """
        Retira uma notificacao exibida, disparando on_dismiss uma unica vez.

        Args:
            notification_id: ID da notificacao
            manual: True para gestos do usuario (swipe, botao fechar); e
                ignorado para notificacoes criadas com dismissible=False

        Returns:
            True se a notificacao foi retirada por esta chamada
        """
        return await self._retire(notification_id, RetireCause.DISMISSED, manual=manual)

    async def perform_action(self, notification_id: str) -> bool:
        """
        Executa a acao de uma notificacao exibida (on_action, depois on_dismiss).

        Returns:
            True se a notificacao foi retirada por esta chamada
        """
        return await self._retire(notification_id, RetireCause.ACTION)

    async def dismiss_current(self) -> bool:
        """Retira a notificacao exibida mais antiga"""
        current = self._store.peek_current()
        if not current:
            return False
        return await self.dismiss(current[0].id)

    async def perform_action_current(self) -> bool:
        """Executa a acao da notificacao exibida mais antiga"""
        current = self._store.peek_current()
        if not current:
            return False
        return await self.perform_action(current[0].id)

    async def dismiss_all(self, *, notify_pending: Optional[bool] = None) -> int:
        """
        Retira todas as notificacoes exibidas e descarta a fila sem promover.

        Args:
            notify_pending: Dispara on_dismiss dos registros pendentes
                (None usa a configuracao do controlador)

        Returns:
            Quantidade de notificacoes exibidas que foram retiradas
        """
        return await self._clear(RetireCause.CLEARED, notify_pending)

    async def shutdown(self) -> None:
        """
        Encerra o controlador: cancela todos os timers e retira tudo.

        Depois disso show() levanta ControllerClosedError; as demais
        operacoes viram no-op.
        """
        if self._closed:
            return

        async with self._lock:
            self._closed = True
            timers = list(self._timers.values())
            self._timers.clear()

        for task in timers:
            task.cancel()
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)

        retired = await self._clear(RetireCause.SHUTDOWN, None, allow_closed=True)
        logger.info(f"[Notifications] Controller encerrado ({len(timers)} timers cancelados, {retired} retiradas)")

    async def __aenter__(self) -> "NotificationController":
        return self

    async def __aexit__(self, *args) -> None:
        await self.shutdown()

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def peek_current(self) -> List[NotificationRecord]:
        """Copia das notificacoes exibidas (mais antiga primeiro)"""
        return self._store.peek_current()

    def peek_pending(self) -> List[NotificationRecord]:
        """Copia da fila de espera"""
        return self._store.peek_pending()

    def state_of(self, notification_id: str) -> Optional[NotificationState]:
        """Estado do ciclo de vida, ou None para IDs desconhecidos"""
        if notification_id in self._retiring:
            return NotificationState.RETIRING
        state = self._store.state_of(notification_id)
        if state is not None:
            return state
        if notification_id in self._retired:
            return NotificationState.RETIRED
        return None

    def has_timer(self, notification_id: str) -> bool:
        return notification_id in self._timers

    def snapshot(self) -> Dict[str, Any]:
        """Visao serializavel do estado atual"""
        return {
            "current": [record.to_dict() for record in self._store.peek_current()],
            "pending": [record.to_dict() for record in self._store.peek_pending()],
        }

    def get_stats(self) -> Dict[str, Any]:
        """Retorna estatisticas do controlador"""
        return {
            "mode": self.mode.value,
            "max_concurrent": self.max_concurrent,
            "closed": self._closed,
            "current_count": len(self._store.peek_current()),
            "pending_count": len(self._store.peek_pending()),
            "active_timers": len(self._timers),
            **{k: (dict(v) if isinstance(v, dict) else v) for k, v in self._stats.items()},
        }

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def on_change(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """Registra callback chamado com snapshot() apos cada transicao"""
        self._on_change_callbacks.append(callback)

    def on_callback_error(self, callback: Callable[[str, Exception], None]) -> None:
        """Registra callback para excecoes em on_action/on_dismiss"""
        self._on_callback_error_callbacks.append(callback)

    # =========================================================================
    # INTERNOS
    # =========================================================================

    def _default_duration(self, action_label: Optional[str]) -> NotificationDuration:
        if action_label is not None and self.mode == DisplayMode.QUEUE:
            return NotificationDuration.INDEFINITE
        return NotificationDuration.SHORT

    async def _retire(self, notification_id: str, cause: RetireCause, manual: bool = False) -> bool:
        async with self._lock:
            if self._closed:
                return False

            record = self._store.get(notification_id)
            if record is None or not self._store.is_current(notification_id):
                logger.debug(f"[Notifications] {cause.value} ignorado para {notification_id} (nao exibida)")
                return False

            if manual and not record.dismissible:
                logger.debug(f"[Notifications] Dismiss manual ignorado para {notification_id} (nao dismissible)")
                return False

            outcome = self._store.retire_current(notification_id)
            self._cancel_timer(notification_id)
            self._retiring.add(notification_id)

            if outcome.promoted is not None:
                self._stats["total_promoted"] += 1
                self._stats["total_displayed"] += 1
                self._arm_timer(outcome.promoted)
                get_notification_logger(outcome.promoted.id, __name__).info(
                    f"[Notifications] {outcome.promoted.id} promovida da fila"
                )

        await self._fire_retirements([(outcome.retired, cause)])
        self._notify_change()
        return True

    async def _clear(self, cause: RetireCause, notify_pending: Optional[bool], allow_closed: bool = False) -> int:
        if notify_pending is None:
            notify_pending = self.notify_pending_on_clear

        async with self._lock:
            if self._closed and not allow_closed:
                return 0

            current, pending = self._store.clear()
            for record in current:
                self._cancel_timer(record.id)
                self._retiring.add(record.id)
            for record in pending:
                if notify_pending:
                    self._retiring.add(record.id)
                else:
                    self._mark_retired(record.id, cause)

        retirements = [(record, cause) for record in current]
        if notify_pending:
            retirements.extend((record, cause) for record in pending)
        await self._fire_retirements(retirements)

        if current or pending:
            logger.info(
                f"[Notifications] {len(current)} retiradas, {len(pending)} pendentes descartadas "
                f"({cause.value})"
            )
            self._notify_change()

        return len(current)

    async def _fire_retirements(self, retirements: List[Tuple[NotificationRecord, RetireCause]]) -> None:
        """
        Dispara os callbacks em uma task propria, protegida por shield.

        Se o chamador for cancelado no meio, os registros restantes ainda
        recebem on_dismiss e terminam como RETIRED.
        """
        if not retirements:
            return

        async def _run():
            for record, cause in retirements:
                await self._complete_retirement(record, cause)

        task = asyncio.create_task(_run(), name="notification-callbacks")
        self._callback_tasks.add(task)
        task.add_done_callback(self._callback_tasks.discard)
        await asyncio.shield(task)

    async def _complete_retirement(self, record: NotificationRecord, cause: RetireCause) -> None:
        """Dispara os callbacks do registro ja retirado da fila"""
        try:
            if cause == RetireCause.ACTION:
                await self._invoke(record, record.on_action, "on_action")
            await self._invoke(record, record.on_dismiss, "on_dismiss")
        finally:
            self._retiring.discard(record.id)
            self._mark_retired(record.id, cause)
            get_notification_logger(record.id, __name__).debug(
                f"[Notifications] {record.id} retirada ({cause.value})"
            )

    async def _invoke(self, record: NotificationRecord, callback: Optional[Callback], name: str) -> None:
        if callback is None:
            return
        try:
            result = callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._stats["callback_errors"] += 1
            logger.exception(f"[Notifications] Erro em callback {name} de {record.id}: {e}")
            for listener in self._on_callback_error_callbacks:
                try:
                    listener(record.id, e)
                except Exception as listener_error:
                    logger.error(f"[Notifications] Erro em listener on_callback_error: {listener_error}")

    def _mark_retired(self, notification_id: str, cause: RetireCause) -> None:
        self._retired[notification_id] = cause
        self._retired.move_to_end(notification_id)
        while len(self._retired) > self.RETIRED_HISTORY_LIMIT:
            self._retired.popitem(last=False)
        self._stats["retired_by_cause"][cause.value] += 1

    def _arm_timer(self, record: NotificationRecord) -> None:
        if record.is_indefinite:
            return
        seconds = record.timeout_seconds(self.short_duration, self.long_duration)
        if seconds is None:
            return
        self._timers[record.id] = asyncio.create_task(
            self._expire_after(record.id, seconds),
            name=f"notification-timer-{record.id}"
        )

    def _cancel_timer(self, notification_id: str) -> None:
        task = self._timers.pop(notification_id, None)
        # O proprio timer retirando seu registro nao se cancela
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _expire_after(self, notification_id: str, seconds: float) -> None:
        await asyncio.sleep(seconds)
        logger.debug(f"[Notifications] Timer expirou para {notification_id}")
        await self._retire(notification_id, RetireCause.TIMEOUT)

    def _notify_change(self) -> None:
        if not self._on_change_callbacks:
            return
        snapshot = self.snapshot()
        for callback in self._on_change_callbacks:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"[Notifications] Erro em callback on_change: {e}")
