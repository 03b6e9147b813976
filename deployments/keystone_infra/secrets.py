"""
Two-phase secret handles.

A SecretRef stands in for a secret value at synth time. It can only be rendered
as a CloudFormation dynamic reference (resolved by Secrets Manager at deploy
time) or as an ECS secret binding (resolved by the ECS agent at task start).
There is no code path that yields the plaintext value.
"""

from dataclasses import dataclass
from functools import cached_property
from typing import Optional

from aws_cdk import aws_ecs as ecs, aws_secretsmanager as secretsmanager


@dataclass(frozen=True)
class SecretRef:
    """
    Opaque reference to a Secrets Manager secret, or one JSON field of it.

    Attributes:
        secret: The secret holding the value
        field: JSON key inside the secret string (None for the whole string)
    """

    secret: secretsmanager.ISecret
    field: Optional[str] = None

    @cached_property
    def dynamic_reference(self) -> str:
        """
        `{{resolve:secretsmanager:...}}` token, rendered once per reference so
        repeated use produces identical output.
        """
        if self.field is None:
            value = self.secret.secret_value
        else:
            value = self.secret.secret_value_from_json(self.field)
        return value.unsafe_unwrap()

    def to_ecs_secret(self) -> ecs.Secret:
        return ecs.Secret.from_secrets_manager(self.secret, self.field)

    def __str__(self) -> str:
        return self.dynamic_reference
