# Multi-agent chat supervisor
from .executor import AgentExecutor
from .router import QueryRouter, parse_strategy
from .supervisor import SupervisorAgent, get_supervisor, invalidate_all_clients, reset_supervisors
from .synthesizer import NO_RESPONSE_MESSAGE, ResponseSynthesizer

__all__ = [
    # Routing
    "QueryRouter",
    "parse_strategy",
    # Execution
    "AgentExecutor",
    # Synthesis
    "ResponseSynthesizer",
    "NO_RESPONSE_MESSAGE",
    # Orchestration
    "SupervisorAgent",
    "get_supervisor",
    "reset_supervisors",
    "invalidate_all_clients",
]
