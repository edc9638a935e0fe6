"""
Pipeline Stages Package

Architectural Intent:
- One class per named stage, each testable in isolation against mocked ports
- default_stages() returns the fixed stage order of a pipeline run; without
  an explicit deploy timeout the deploy stage uses the environment's
"""

from typing import Optional

from shipyard.application.stages.base import Stage, StageContext, Redactor
from shipyard.application.stages.validate_environment import ValidateEnvironment
from shipyard.application.stages.checkout_source import CheckoutSource
from shipyard.application.stages.build_image import BuildImage
from shipyard.application.stages.push_image import PushImage
from shipyard.application.stages.deploy_to_cluster import DeployToCluster
from shipyard.application.stages.verify_deployment import VerifyDeployment


def default_stages(deploy_timeout: Optional[float] = None) -> list[Stage]:
    deploy = DeployToCluster(timeout=deploy_timeout)
    return [
        ValidateEnvironment(),
        CheckoutSource(),
        BuildImage(),
        PushImage(),
        deploy,
        VerifyDeployment(),
    ]


__all__ = [
    "Stage",
    "StageContext",
    "Redactor",
    "ValidateEnvironment",
    "CheckoutSource",
    "BuildImage",
    "PushImage",
    "DeployToCluster",
    "VerifyDeployment",
    "default_stages",
]
