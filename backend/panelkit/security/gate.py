"""
panelkit/security/gate.py - authorization gate and model policies

A Policy is a set of named, optionally present handlers. An action absent
from the policy is simply "not defined"; Resource.can() treats that, and a
missing policy, as allowed. The gate itself only answers for defined actions.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)

# (user, subject) -> bool; subject is a record or the model class
PolicyHandler = Callable[[Any, Any], bool]

# (user, action, subject) -> True / False to decide, None to continue
BeforeCallback = Callable[[Any, str, Any], Optional[bool]]


def model_key(model: Union[type, str]) -> str:
    """Dotted identifier of a model class (``app.models.Post``)"""
    if isinstance(model, str):
        return model
    return f"{model.__module__}.{model.__qualname__}"


class Policy:
    """
    Action handlers for one model type

    Example:
        >>> policy = Policy({"view_any": lambda user, subject: user is not None})
        >>> @policy.action("update")
        ... def update(user, post):
        ...     return post.author_id == user.id
    """

    def __init__(self, handlers: Optional[Mapping[str, PolicyHandler]] = None):
        self._handlers: Dict[str, PolicyHandler] = dict(handlers or {})

    def define(self, action: str, handler: PolicyHandler) -> "Policy":
        self._handlers[action] = handler
        return self

    def action(self, name: str) -> Callable[[PolicyHandler], PolicyHandler]:
        """Decorator form of define()"""
        def decorator(handler: PolicyHandler) -> PolicyHandler:
            self.define(name, handler)
            return handler
        return decorator

    def has(self, action: str) -> bool:
        return action in self._handlers

    def actions(self) -> List[str]:
        return sorted(self._handlers)

    def check(self, user: Any, action: str, subject: Any) -> bool:
        handler = self._handlers.get(action)
        if handler is None:
            return False
        return bool(handler(user, subject))

    def __repr__(self) -> str:
        return f"Policy(actions={self.actions()!r})"


class AuthorizationGate:
    """
    Policy registry and decision point

    Policies are keyed by model class; lookups walk the subject's MRO so a
    policy registered for a base model covers its subclasses. Dotted
    identifiers resolve against the same keys.
    """

    def __init__(self):
        self._policies: Dict[str, Policy] = {}
        self._before: List[BeforeCallback] = []
        self._lock = threading.RLock()

    def register_policy(self, model: Union[type, str], policy: Policy) -> "AuthorizationGate":
        with self._lock:
            self._policies[model_key(model)] = policy
        logger.info(f"Registered policy for {model_key(model)}: {policy.actions()}")
        return self

    def before(self, callback: BeforeCallback) -> "AuthorizationGate":
        """Register a callback consulted before any policy (e.g. superusers)"""
        with self._lock:
            self._before.append(callback)
        return self

    def policy_for(self, subject: Any) -> Optional[Policy]:
        """Policy for a model class, a record of it, or its dotted identifier"""
        with self._lock:
            if isinstance(subject, str):
                return self._policies.get(subject)

            model = subject if isinstance(subject, type) else type(subject)
            for klass in model.__mro__:
                policy = self._policies.get(model_key(klass))
                if policy is not None:
                    return policy
        return None

    def check(self, user: Any, action: str, subject: Any) -> bool:
        """Decide ``action`` for ``user`` on ``subject``; undefined actions deny"""
        with self._lock:
            callbacks = list(self._before)

        for callback in callbacks:
            verdict = callback(user, action, subject)
            if verdict is not None:
                return bool(verdict)

        policy = self.policy_for(subject)
        if policy is None or not policy.has(action):
            logger.debug(f"Gate: no '{action}' handler for {subject!r}, denying")
            return False

        allowed = policy.check(user, action, subject)
        if not allowed:
            logger.debug(f"Gate: '{action}' denied on {subject!r}")
        return allowed

    def clear(self) -> None:
        """Remove every policy and callback (for tests)"""
        with self._lock:
            self._policies.clear()
            self._before.clear()


# Default gate shared by panels that do not configure their own
gate = AuthorizationGate()

__all__ = [
    "PolicyHandler",
    "BeforeCallback",
    "model_key",
    "Policy",
    "AuthorizationGate",
    "gate",
]
