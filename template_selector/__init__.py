"""
Template Selector

Deterministic, explainable template selection for scanned documents.

Features:
- Token fingerprint scoring (required-all / required-any / optional tokens, form code regex)
- Multi-signal scoring (token, layout, ROI, plausibility) with versioned weights
- Metadata boosting by client, asset type and work type
- Conservative decisions (AUTO_SELECT / REVIEW_QUEUE / HARD_STOP) that refuse ambiguity
- Reproducible selection traces with content-derived trace ids
- Built-in templates and a regression fixture suite
- Thread-pool batch selection against a single registry snapshot

Quick Start:
    from template_selector import TemplateSelector, DocumentContext, builtin_templates

    selector = TemplateSelector()
    result = selector.select(DocumentContext(document_text=text), builtin_templates())
    print(result.selected, result.template_slug, result.confidence_band)
    print(result.block_reason)  # set when the document goes to review

    # Multi-signal mode
    from template_selector import SelectorConfig, SelectionMode

    config = SelectorConfig(mode=SelectionMode.MULTI_SIGNAL)
    result = TemplateSelector(config=config).select(context, templates)

CLI Usage:
    # Select a template for one document
    template-selector select job_sheet.txt --templates templates/

    # List active templates
    template-selector list-templates --templates templates/

    # Run the regression fixtures
    template-selector run-fixtures
"""

__version__ = '1.0.0'

# Configuration
from .config import (
    SelectionMode,
    SelectorConfig,
    DEFAULT_CONFIG,
    load_config,
)

# Document input
from .document import (
    FormType,
    PageDimensions,
    DocumentMetadata,
    MatchingMetadata,
    DocumentContext,
)

# Templates
from .templates.template import (
    TemplateStatus,
    SelectionConfig,
    RoiConfig,
    LayoutExpectations,
    FieldExpectation,
    TemplateCandidate,
    create_template,
)
from .templates.registry import (
    TemplateRegistry,
    InMemoryTemplateRegistry,
    load_registry,
)
from .templates.builtin_templates import builtin_templates

# Signals
from .signals.base import ConfidenceBand, SignalType, SignalResult
from .signals.weights import VersionedWeights, DEFAULT_WEIGHTS
from .signals.combiner import MultiSignalResult, combine_signals

# Decisions
from .decision.decision_engine import (
    DecisionType,
    ReasonCode,
    SelectionDecision,
    SelectionPolicy,
    DecisionEngine,
    DEFAULT_POLICY,
)

# Selection
from .selection.ranker import Candidate, rank_candidates
from .selection.selector import (
    SelectionResult,
    TemplateSelector,
    select_template,
    select_template_multi_signal,
    build_context,
)

# Traces
from .trace.trace_builder import SelectionTrace, TraceBuilder, serialize_trace
from .trace.trace_export import TraceExporter, TraceFormat

# Batch
from .performance.worker_pool import SelectionWorkerPool, BatchReport, BatchStatus

__all__ = [
    # Version
    '__version__',

    # Configuration
    'SelectionMode',
    'SelectorConfig',
    'DEFAULT_CONFIG',
    'load_config',

    # Document input
    'FormType',
    'PageDimensions',
    'DocumentMetadata',
    'MatchingMetadata',
    'DocumentContext',

    # Templates
    'TemplateStatus',
    'SelectionConfig',
    'RoiConfig',
    'LayoutExpectations',
    'FieldExpectation',
    'TemplateCandidate',
    'create_template',
    'TemplateRegistry',
    'InMemoryTemplateRegistry',
    'load_registry',
    'builtin_templates',

    # Signals
    'ConfidenceBand',
    'SignalType',
    'SignalResult',
    'VersionedWeights',
    'DEFAULT_WEIGHTS',
    'MultiSignalResult',
    'combine_signals',

    # Decisions
    'DecisionType',
    'ReasonCode',
    'SelectionDecision',
    'SelectionPolicy',
    'DecisionEngine',
    'DEFAULT_POLICY',

    # Selection
    'Candidate',
    'rank_candidates',
    'SelectionResult',
    'TemplateSelector',
    'select_template',
    'select_template_multi_signal',
    'build_context',

    # Traces
    'SelectionTrace',
    'TraceBuilder',
    'serialize_trace',
    'TraceExporter',
    'TraceFormat',

    # Batch
    'SelectionWorkerPool',
    'BatchReport',
    'BatchStatus',
]
