# -*- coding: utf-8 -*-
"""
Modelos de Dados do Controlador de Notificacoes
===============================================

Este modulo define:
- NotificationRecord: pedido imutavel de notificacao (toast/snackbar)
- Enums de severidade, duracao, modo de exibicao e ciclo de vida
- Tipos de resultado das transicoes da fila (EnqueueResult, RetireOutcome)
- build_record: construtor permissivo (nunca falha, coage para defaults)

O estado do ciclo de vida NAO fica no registro; fica no controlador.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS
# =============================================================================

class Severity(str, Enum):
    """Severidade da notificacao (metadado repassado para a camada de exibicao)"""
    DEFAULT = "default"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationDuration(str, Enum):
    """Duracoes pre-definidas; os segundos vem das configuracoes do perfil"""
    SHORT = "short"
    LONG = "long"
    INDEFINITE = "indefinite"


class DisplayMode(str, Enum):
    """Modo de exibicao"""
    QUEUE = "queue"    # snackbar: slots cheios -> fila FIFO
    STACK = "stack"    # toast: slots cheios -> remove o mais antigo


class NotificationState(str, Enum):
    """Estados do ciclo de vida de um registro"""
    PENDING = "pending"
    DISPLAYED = "displayed"
    RETIRING = "retiring"
    RETIRED = "retired"


class RetireCause(str, Enum):
    """Motivo da retirada de um registro"""
    TIMEOUT = "timeout"
    DISMISSED = "dismissed"
    ACTION = "action"
    EVICTED = "evicted"
    CLEARED = "cleared"
    SHUTDOWN = "shutdown"


class DisplayDecision(str, Enum):
    """Resultado de enqueue_or_display"""
    DISPLAYED = "displayed"
    QUEUED = "queued"
    DISPLAYED_WITH_EVICTION = "displayed_with_eviction"


class RetireResult(str, Enum):
    """Resultado de retire_current"""
    NOT_FOUND = "not_found"
    PROMOTED = "promoted"
    IDLE = "idle"


Callback = Callable[[], Union[None, Awaitable[None]]]
DurationSpec = Union[NotificationDuration, int, float, timedelta]


# =============================================================================
# NOTIFICATION RECORD
# =============================================================================

def generate_notification_id() -> str:
    """Gera ID unico opaco (sem semantica de ordem)"""
    return f"NTF-{uuid.uuid4().hex[:12].upper()}"


@dataclass(frozen=True)
class NotificationRecord:
    """
    Pedido imutavel de notificacao.

    Atributos:
        message: Texto exibido
        severity: Severidade (apenas metadado)
        action_label: Rotulo da acao (None = sem acao)
        duration: NotificationDuration ou segundos explicitos (float >= 0)
        dismissible: Permite dismiss manual (gesto do usuario)
        on_action: Callback da acao (no maximo uma vez)
        on_dismiss: Callback de dismiss (no maximo uma vez)
        id: ID unico gerado na criacao
        created_at: Data/hora de criacao
    """
    message: str
    severity: Severity = Severity.DEFAULT
    action_label: Optional[str] = None
    duration: Union[NotificationDuration, float] = NotificationDuration.SHORT
    dismissible: bool = True
    on_action: Optional[Callback] = field(default=None, compare=False, repr=False)
    on_dismiss: Optional[Callback] = field(default=None, compare=False, repr=False)
    id: str = field(default_factory=generate_notification_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    @property
    def has_action(self) -> bool:
        return self.action_label is not None

    @property
    def is_indefinite(self) -> bool:
        return self.duration == NotificationDuration.INDEFINITE

    def timeout_seconds(self, short: float, long: float) -> Optional[float]:
        """
        Resolve a duracao em segundos.

        Args:
            short: Segundos de NotificationDuration.SHORT
            long: Segundos de NotificationDuration.LONG

        Returns:
            Segundos ate o auto-dismiss, ou None se indefinida
        """
        if self.is_indefinite:
            return None
        if self.duration == NotificationDuration.SHORT:
            return float(short)
        if self.duration == NotificationDuration.LONG:
            return float(long)
        return float(self.duration)

    def to_dict(self) -> dict:
        """Converte para dicionario (sem callbacks)"""
        duration = self.duration.value if isinstance(self.duration, NotificationDuration) else self.duration
        return {
            "id": self.id,
            "message": self.message,
            "severity": self.severity.value,
            "action_label": self.action_label,
            "duration": duration,
            "dismissible": self.dismissible,
            "created_at": self.created_at.isoformat(),
        }


# =============================================================================
# RESULTADOS DA FILA
# =============================================================================

@dataclass
class EnqueueResult:
    """Resultado de QueueStore.enqueue_or_display"""
    decision: DisplayDecision
    record: NotificationRecord
    evicted: Optional[NotificationRecord] = None

    @property
    def displayed(self) -> bool:
        return self.decision != DisplayDecision.QUEUED

    @property
    def evicted_id(self) -> Optional[str]:
        return self.evicted.id if self.evicted else None


@dataclass
class RetireOutcome:
    """Resultado de QueueStore.retire_current"""
    result: RetireResult
    retired: Optional[NotificationRecord] = None
    promoted: Optional[NotificationRecord] = None

    @property
    def found(self) -> bool:
        return self.result != RetireResult.NOT_FOUND


# =============================================================================
# BUILDER
# =============================================================================

def coerce_duration(
    duration: Any,
    default: NotificationDuration = NotificationDuration.SHORT
) -> Union[NotificationDuration, float]:
    """
    Normaliza uma duracao informada pelo chamador.

    Aceita NotificationDuration, seu valor string ("short", ...), numeros
    (segundos) e timedelta. Valores negativos ou invalidos viram `default`.
    """
    if duration is None:
        return default

    if isinstance(duration, NotificationDuration):
        return duration

    if isinstance(duration, str):
        try:
            return NotificationDuration(duration.lower())
        except ValueError:
            logger.warning(f"[Notifications] Duracao desconhecida '{duration}', usando {default.value}")
            return default

    if isinstance(duration, timedelta):
        duration = duration.total_seconds()

    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        logger.warning(f"[Notifications] Duracao invalida {duration!r}, usando {default.value}")
        return default

    if duration < 0:
        logger.warning(f"[Notifications] Duracao negativa {duration}, usando {default.value}")
        return default

    return float(duration)


def coerce_severity(severity: Any) -> Severity:
    """Normaliza severidade (valores desconhecidos viram DEFAULT)"""
    if isinstance(severity, Severity):
        return severity
    try:
        return Severity(str(severity).lower())
    except ValueError:
        logger.warning(f"[Notifications] Severidade desconhecida '{severity}', usando default")
        return Severity.DEFAULT


def build_record(
    message: Optional[str],
    severity: Any = Severity.DEFAULT,
    action_label: Optional[str] = None,
    duration: Optional[DurationSpec] = None,
    dismissible: bool = True,
    on_action: Optional[Callback] = None,
    on_dismiss: Optional[Callback] = None,
    default_duration: NotificationDuration = NotificationDuration.SHORT
) -> NotificationRecord:
    """
    Cria um NotificationRecord a partir dos campos do chamador.

    Nunca falha: entradas invalidas sao coagidas para defaults e logadas.

    Args:
        message: Texto (None vira "")
        severity: Severity ou string
        action_label: Rotulo da acao
        duration: Duracao (None usa default_duration)
        dismissible: Permite dismiss manual
        on_action: Callback da acao
        on_dismiss: Callback de dismiss
        default_duration: Duracao usada quando nenhuma e informada ou invalida

    Returns:
        NotificationRecord novo, com ID unico
    """
    if message is None:
        logger.warning("[Notifications] Mensagem ausente, usando string vazia")
        message = ""
    elif not isinstance(message, str):
        message = str(message)

    if message == "":
        logger.debug("[Notifications] Notificacao criada com mensagem vazia")

    return NotificationRecord(
        message=message,
        severity=coerce_severity(severity),
        action_label=action_label,
        duration=coerce_duration(duration, default_duration),
        dismissible=bool(dismissible),
        on_action=on_action,
        on_dismiss=on_dismiss,
    )
