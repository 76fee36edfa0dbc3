"""
Admin form handling: submissions, transients, redirects and page data.
"""

from .controller import AdminFormController, Outcome, RedirectDecision
from .page import AdminPage
from .submissions import EntityKind, FieldmapSubmission, Method, ObjectMapSubmission, parse_submission
from .transients import TransientStore

__all__ = [
    'AdminFormController',
    'AdminPage',
    'EntityKind',
    'FieldmapSubmission',
    'Method',
    'ObjectMapSubmission',
    'Outcome',
    'RedirectDecision',
    'TransientStore',
    'parse_submission',
]
