from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class KubeContext:
    """
    Value Object selecting the cluster a kubectl invocation talks to.
    """
    kubeconfig: Path
    context: Optional[str] = None
    namespace: str = "default"

    def __post_init__(self):
        if not str(self.kubeconfig):
            raise ValueError("Kubeconfig path cannot be empty")
        if not self.namespace:
            raise ValueError("Namespace cannot be empty")

    def kubectl_args(self) -> list[str]:
        args = ["--kubeconfig", str(self.kubeconfig)]
        if self.context:
            args += ["--context", self.context]
        return args

    def __str__(self):
        return f"{self.context or 'current-context'}@{self.kubeconfig}"
