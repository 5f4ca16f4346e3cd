from dibind.bindings import Binding
from dibind.container import Container
from dibind.context import ContextRegistry, context
from dibind.dependencies import ConstructorDependency, Dependency
from dibind.discovery import DependencyFinder, get_dependencies
from dibind.exceptions import (
    DIBindBindingNotFoundError,
    DIBindBindingTypeMismatchError,
    DIBindCircularDependencyError,
    DIBindCircularProxyError,
    DIBindContainerDisposedError,
    DIBindContainerNotFoundError,
    DIBindDependencyDiscoveryError,
    DIBindDuplicateBindingError,
    DIBindDuplicateContainerError,
    DIBindDuplicateDefaultConstructorError,
    DIBindError,
    DIBindResolutionError,
)
from dibind.markers import DefaultConstructor, Inject, InjectArgument, default_constructor
from dibind.types import CircularDependencyPolicy, Lifecycle, MemberKind

__all__ = [
    "Binding",
    "CircularDependencyPolicy",
    "ConstructorDependency",
    "Container",
    "ContextRegistry",
    "DIBindBindingNotFoundError",
    "DIBindBindingTypeMismatchError",
    "DIBindCircularDependencyError",
    "DIBindCircularProxyError",
    "DIBindContainerDisposedError",
    "DIBindContainerNotFoundError",
    "DIBindDependencyDiscoveryError",
    "DIBindDuplicateBindingError",
    "DIBindDuplicateContainerError",
    "DIBindDuplicateDefaultConstructorError",
    "DIBindError",
    "DIBindResolutionError",
    "DefaultConstructor",
    "Dependency",
    "DependencyFinder",
    "Inject",
    "InjectArgument",
    "Lifecycle",
    "MemberKind",
    "context",
    "default_constructor",
    "get_dependencies",
]
