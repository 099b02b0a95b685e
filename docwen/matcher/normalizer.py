"""Signature normalization into matching keys."""

from docwen.parser import FunctionSignature, Parameter

from .models import MatchMode, SignatureKey

# Trailing qualifiers that change which function is meant
METHOD_QUALIFIERS = frozenset({"const", "volatile", "&", "&&"})


def normalize_parameter_type(parameter: Parameter) -> str:
    """
    Canonical text of a parameter's type.

    The name and default value are dropped. Type tokens keep their order
    and are joined by single spaces, so `const char *s` and `const char* s`
    normalize identically while `char const*` stays distinct.
    """
    return " ".join(parameter.type_tokens)


def normalize_signature(signature: FunctionSignature, mode: MatchMode) -> SignatureKey:
    """
    Derive the identity key of a signature under a matching mode.

    Args:
        signature: Signature as extracted from the source
        mode: QUALIFIED keeps the scope path, UNQUALIFIED drops it

    Returns:
        SignatureKey usable as a mapping key
    """
    qualifiers = signature.qualifiers if mode == MatchMode.QUALIFIED else ()
    return SignatureKey(
        qualifiers=tuple(qualifiers),
        name=signature.name,
        parameter_types=tuple(normalize_parameter_type(p) for p in signature.parameters),
        method_qualifiers=tuple(
            q for q in signature.trailing_qualifiers if q in METHOD_QUALIFIERS
        ),
    )
