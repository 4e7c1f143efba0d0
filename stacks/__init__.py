"""
Stack modules for the RAPIDS GPU notebook on Amazon ECS

This package contains the CDK stack definitions for the basic notebook
deployment and the variant fronted by an authenticated load balancer.
"""

from .rapids_notebook_stack import RapidsNotebookStack
from .secure_rapids_notebook_stack import SecureRapidsNotebookStack
from .site_parameters import SiteParameters

__all__ = [
    "RapidsNotebookStack",
    "SecureRapidsNotebookStack",
    "SiteParameters",
]
