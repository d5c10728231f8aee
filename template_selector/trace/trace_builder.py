"""
Selection Trace

Immutable audit record of one selection pass, produced for every outcome
including blocks. Serialization sorts keys so two traces built from the
same inputs are byte-identical apart from timestamp and duration.
"""

from __future__ import annotations

import hashlib
import json
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Sequence, Tuple, TYPE_CHECKING

from ..decision.decision_engine import DEFAULT_POLICY, SelectionDecision, SelectionPolicy, sort_candidates
from ..signals.base import ConfidenceBand
from ..signals.weights import DEFAULT_WEIGHTS, VersionedWeights
from ..text.tokenizer import TokenizedDocument

if TYPE_CHECKING:
    from ..selection.ranker import Candidate


TRACE_VERSION = '1.0.0'
TRACE_ID_PREFIX = 'sel_'
TOKEN_SAMPLE_SIZE = 20

# Fields that differ between otherwise identical runs
_VOLATILE_FIELDS = ('trace_id', 'timestamp', 'duration_ms')


def create_input_hash(text: str) -> str:
    """
    Fast deterministic 32-bit hash of text, as 8+ hex digits.

    Uses the classic ``h = h * 31 + unit`` string hash over UTF-16 code
    units with signed 32-bit wraparound, so the value is stable across
    runs and platforms.
    """
    h = 0
    data = text.encode('utf-16-le')
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return format(abs(h), 'x').zfill(8)


def _canonical_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, sort_keys=True, separators=(',', ':'), ensure_ascii=False)


def _trace_candidate(candidate: 'Candidate') -> Dict[str, Any]:
    data = {
        'template_id': candidate.template_id,
        'version_id': candidate.version_id,
        'template_slug': candidate.template_slug,
        'score': candidate.score,
        'base_score': candidate.base_score,
        'confidence_band': candidate.confidence.value,
        'matched_tokens': list(candidate.matched_tokens),
        'missing_required': list(candidate.missing_required),
        'form_code_match': candidate.form_code_match,
        'context_matches': candidate.context_matches.to_dict(),
    }
    if candidate.multi_signal is not None:
        data['multi_signal'] = candidate.multi_signal.to_dict()
    return data


@dataclass(frozen=True)
class SelectionTrace:
    """
    Write-once record of a selection.

    gap is -1 when there is no runner-up.
    """
    trace_id: str
    timestamp: str
    input_hash: str
    candidates: Tuple[Dict[str, Any], ...]
    top_candidate: Optional[Dict[str, Any]]
    runner_up: Optional[Dict[str, Any]]
    gap: int
    confidence_band: ConfidenceBand
    decision: SelectionDecision
    explicit_template_id: Optional[str]
    duration_ms: float
    mode: str
    policy: SelectionPolicy
    weights: VersionedWeights
    input_signals: Dict[str, Any] = field(default_factory=dict)
    document_id: Optional[str] = None
    trace_version: str = TRACE_VERSION

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'trace_version': self.trace_version,
            'trace_id': self.trace_id,
            'timestamp': self.timestamp,
            'document_id': self.document_id,
            'input_hash': self.input_hash,
            'input_signals': dict(self.input_signals),
            'mode': self.mode,
            'candidates': [dict(c) for c in self.candidates],
            'top_candidate': self.top_candidate,
            'runner_up': self.runner_up,
            'gap': self.gap,
            'confidence_band': self.confidence_band.value,
            'decision': self.decision.to_dict(),
            'explicit_template_id': self.explicit_template_id,
            'duration_ms': self.duration_ms,
            'policy': self.policy.to_dict(),
            'weights': self.weights.to_dict(),
        }

    def canonical_body(self) -> Dict[str, Any]:
        """Trace content without the fields that vary between identical runs."""
        body = self.to_dict()
        for name in _VOLATILE_FIELDS:
            body.pop(name, None)
        return body


def compute_trace_id(body: Dict[str, Any]) -> str:
    """Content-addressed trace id of a canonical trace body."""
    digest = hashlib.sha256(_canonical_json(body).encode('utf-8')).hexdigest()
    return f"{TRACE_ID_PREFIX}{digest[:16]}"


def serialize_trace(trace: SelectionTrace) -> str:
    """Serialize a trace to JSON with sorted keys."""
    return json.dumps(trace.to_dict(), sort_keys=True, indent=2, ensure_ascii=False)


class TraceBuilder:
    """
    Assembles a SelectionTrace from a finished ranking and decision.

    Usage:
        builder = TraceBuilder(policy, weights, mode='token')
        builder.set_input(document).set_candidates(ranked).set_decision(decision)
        trace = builder.build()
    """

    def __init__(
        self,
        policy: SelectionPolicy = DEFAULT_POLICY,
        weights: VersionedWeights = DEFAULT_WEIGHTS,
        mode: str = 'token',
        started_at: Optional[float] = None,
    ):
        """
        Initialize builder.

        Args:
            policy: Policy the decision was made under
            weights: Weight set the candidates were scored with
            mode: Scoring mode name
            started_at: time.perf_counter() value when the selection began
        """
        self._start = started_at if started_at is not None else time.perf_counter()
        self._policy = policy
        self._weights = weights
        self._mode = mode
        self._input_hash = create_input_hash('')
        self._input_signals: Dict[str, Any] = {}
        self._candidates: List['Candidate'] = []
        self._decision: Optional[SelectionDecision] = None
        self._explicit_template_id: Optional[str] = None
        self._document_id: Optional[str] = None
        self._trace_id: Optional[str] = None

    def set_input(self, document: TokenizedDocument, document_length: Optional[int] = None) -> 'TraceBuilder':
        self._input_hash = create_input_hash(document.normalized_text)
        self._input_signals = {
            'token_count': len(document.tokens),
            'token_sample': list(document.tokens[:TOKEN_SAMPLE_SIZE]),
            'document_length': document_length if document_length is not None else len(document.normalized_text),
        }
        return self

    def set_candidates(self, candidates: Sequence['Candidate']) -> 'TraceBuilder':
        self._candidates = list(candidates)
        return self

    def set_decision(self, decision: SelectionDecision) -> 'TraceBuilder':
        self._decision = decision
        return self

    def set_explicit_template_id(self, template_id: Optional[str]) -> 'TraceBuilder':
        self._explicit_template_id = template_id
        return self

    def set_document_id(self, document_id: Optional[str]) -> 'TraceBuilder':
        self._document_id = document_id
        return self

    def set_trace_id(self, trace_id: Optional[str]) -> 'TraceBuilder':
        """Use a caller-supplied id instead of the content-addressed one."""
        self._trace_id = trace_id
        return self

    def build(self) -> SelectionTrace:
        """
        Build the trace.

        Raises:
            ValueError: If no decision was set
        """
        if self._decision is None:
            raise ValueError("TraceBuilder.build() called before set_decision()")

        ranked = sort_candidates(self._candidates)
        top = ranked[0] if ranked else None
        runner_up = ranked[1] if len(ranked) > 1 else None
        entries = tuple(_trace_candidate(c) for c in ranked)

        trace = SelectionTrace(
            trace_id='',
            timestamp=datetime.now(timezone.utc).isoformat(),
            input_hash=self._input_hash,
            candidates=entries,
            top_candidate=entries[0] if top else None,
            runner_up=entries[1] if runner_up else None,
            gap=top.score - runner_up.score if top and runner_up else -1,
            confidence_band=top.confidence if top else ConfidenceBand.LOW,
            decision=self._decision,
            explicit_template_id=self._explicit_template_id,
            duration_ms=round((time.perf_counter() - self._start) * 1000, 3),
            mode=self._mode,
            policy=self._policy,
            weights=self._weights,
            input_signals=self._input_signals,
            document_id=self._document_id,
        )

        trace_id = self._trace_id or compute_trace_id(trace.canonical_body())
        return replace(trace, trace_id=trace_id)
