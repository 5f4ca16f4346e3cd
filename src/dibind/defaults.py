from dibind.types import CircularDependencyPolicy, Lifecycle

DEFAULT_CATEGORY = ""
"""Category used by bindings and dependencies that do not name one."""

DEFAULT_LIFECYCLE = Lifecycle.TRANSIENT

DEFAULT_CIRCULAR_POLICY = CircularDependencyPolicy.ALLOW_SINGLETON_MEMBERS
