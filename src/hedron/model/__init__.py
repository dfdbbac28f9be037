"""Core data model for hedron: element storage, abstract and concrete polytopes.

Everything is re-exported here so that ``from hedron.model import
AbstractPolytope`` works without knowing the module layout.
"""

from hedron.model.abstract import AbstractPolytope
from hedron.model.concrete import ConcretePolytope
from hedron.model.elements import AbstractBuilder, Element, ElementStore
from hedron.model.flags import Flag

__all__ = [
    "AbstractBuilder",
    "AbstractPolytope",
    "ConcretePolytope",
    "Element",
    "ElementStore",
    "Flag",
]
