from agentbridge.injector.base import AgentInjector, InjectionRequest, InjectionResult
from agentbridge.injector.process import SubprocessInjector

__all__ = [
    "AgentInjector",
    "InjectionRequest",
    "InjectionResult",
    "SubprocessInjector",
]
