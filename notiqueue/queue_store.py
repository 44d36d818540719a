# -*- coding: utf-8 -*-
"""
Queue Store
===========
Guarda os registros exibidos (`current`) e a fila de espera (`pending`).

Regras:
- Um registro esta em exatamente um de {pending, current, retirado}
- `pending` e FIFO, sem prioridade
- Slot liberado com fila nao vazia e promovido na MESMA operacao
- Modo STACK: slots cheios -> o registro mais antigo de `current` e removido

A classe e sincrona e nao tem lock proprio: todas as chamadas sao
serializadas pelo NotificationController.
"""

import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from .exceptions import ConfigurationError
from .models import (
    DisplayDecision,
    DisplayMode,
    EnqueueResult,
    NotificationRecord,
    NotificationState,
    RetireOutcome,
    RetireResult,
)

logger = logging.getLogger(__name__)


class QueueStore:
    """
    Colecoes `current` + `pending` com transicoes atomicas.

    Args:
        max_concurrent: Numero de slots de exibicao (>= 1)
        mode: DisplayMode.QUEUE (enfileira) ou DisplayMode.STACK (remove o mais antigo)
    """

    def __init__(self, max_concurrent: int = 1, mode: DisplayMode = DisplayMode.QUEUE):
        if isinstance(max_concurrent, bool) or not isinstance(max_concurrent, int) or max_concurrent <= 0:
            raise ConfigurationError("max_concurrent", max_concurrent)

        self.max_concurrent = max_concurrent
        self.mode = DisplayMode(mode)
        self._current: List[NotificationRecord] = []
        self._pending: Deque[NotificationRecord] = deque()
        # id -> estado, apenas para registros ainda vivos
        self._states: Dict[str, NotificationState] = {}

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    @property
    def has_capacity(self) -> bool:
        return len(self._current) < self.max_concurrent

    def peek_current(self) -> List[NotificationRecord]:
        """Copia dos registros exibidos (mais antigo primeiro)"""
        return list(self._current)

    def peek_pending(self) -> List[NotificationRecord]:
        """Copia da fila de espera (ordem FIFO)"""
        return list(self._pending)

    def get(self, notification_id: str) -> Optional[NotificationRecord]:
        """Retorna o registro vivo com o ID (exibido ou pendente)"""
        for record in self._current:
            if record.id == notification_id:
                return record
        for record in self._pending:
            if record.id == notification_id:
                return record
        return None

    def state_of(self, notification_id: str) -> Optional[NotificationState]:
        """Estado do registro, ou None se desconhecido/retirado"""
        return self._states.get(notification_id)

    def is_current(self, notification_id: str) -> bool:
        return self._states.get(notification_id) == NotificationState.DISPLAYED

    def __len__(self) -> int:
        return len(self._current) + len(self._pending)

    def __contains__(self, notification_id: str) -> bool:
        return notification_id in self._states

    # =========================================================================
    # TRANSICOES
    # =========================================================================

    def enqueue_or_display(self, record: NotificationRecord) -> EnqueueResult:
        """
        Exibe o registro se houver slot; senao enfileira (QUEUE) ou
        remove o mais antigo exibido (STACK).

        O registro removido e retornado em `evicted`; disparar o callback
        dele e responsabilidade do chamador.
        """
        if record.id in self._states:
            raise ValueError(f"Notification {record.id} already tracked")

        if self.has_capacity:
            self._display(record)
            return EnqueueResult(decision=DisplayDecision.DISPLAYED, record=record)

        if self.mode == DisplayMode.QUEUE:
            self._pending.append(record)
            self._states[record.id] = NotificationState.PENDING
            logger.debug(f"[Notifications] {record.id} enfileirada (pending={len(self._pending)})")
            return EnqueueResult(decision=DisplayDecision.QUEUED, record=record)

        evicted = self._current.pop(0)
        self._states.pop(evicted.id, None)
        self._display(record)
        logger.debug(f"[Notifications] {evicted.id} removida para exibir {record.id}")
        return EnqueueResult(
            decision=DisplayDecision.DISPLAYED_WITH_EVICTION,
            record=record,
            evicted=evicted
        )

    def retire_current(self, notification_id: str) -> RetireOutcome:
        """
        Retira um registro exibido e promove o proximo da fila.

        IDs desconhecidos, pendentes ou ja retirados retornam NOT_FOUND sem
        alterar nada (protege contra timers atrasados).
        """
        index = self._index_of_current(notification_id)
        if index is None:
            return RetireOutcome(result=RetireResult.NOT_FOUND)

        retired = self._current.pop(index)
        self._states.pop(retired.id, None)

        promoted = self._promote()
        if promoted is not None:
            return RetireOutcome(result=RetireResult.PROMOTED, retired=retired, promoted=promoted)
        return RetireOutcome(result=RetireResult.IDLE, retired=retired)

    def clear(self) -> Tuple[List[NotificationRecord], List[NotificationRecord]]:
        """
        Esvazia `current` e `pending` sem promover.

        Returns:
            (registros exibidos removidos, registros pendentes descartados)
        """
        current = list(self._current)
        pending = list(self._pending)
        self._current.clear()
        self._pending.clear()
        self._states.clear()
        return current, pending

    # =========================================================================
    # INTERNOS
    # =========================================================================

    def _display(self, record: NotificationRecord) -> None:
        self._current.append(record)
        self._states[record.id] = NotificationState.DISPLAYED

    def _promote(self) -> Optional[NotificationRecord]:
        if not self._pending or not self.has_capacity:
            return None
        record = self._pending.popleft()
        self._display(record)
        return record

    def _index_of_current(self, notification_id: str) -> Optional[int]:
        for index, record in enumerate(self._current):
            if record.id == notification_id:
                return index
        return None
