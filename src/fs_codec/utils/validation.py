"""Validation utilities checking values against shape descriptors."""

from typing import List

from ..models.shape import (
    EnumShape,
    ListShape,
    MapShape,
    OptionShape,
    RecordShape,
    ScalarShape,
    Shape,
    TupleShape,
)
from ..models.value import (
    MapValue,
    OptionValue,
    RecordValue,
    SequenceValue,
    Value,
    VariantKind,
    VariantValue,
)
from ..naming import join_relative
from ..types import ErrorType, ValidationError, ValidationResult
from .scalars import scalar_kind_of


class ValidationUtils:
    """Utility class for validating values before they are written."""

    @staticmethod
    def validate_value(value: Value, shape: Shape) -> ValidationResult:
        """
        Check that a value conforms to a shape.

        A value that passes without warnings reads back unchanged when its
        tree is deserialized with the same shape.

        Args:
            value: Value to check
            shape: Expected shape

        Returns:
            ValidationResult listing every disagreement with its path
        """
        errors: List[ValidationError] = []
        warnings: List[str] = []
        ValidationUtils._check(value, shape, ".", errors, warnings)
        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings
        )

    @staticmethod
    def _mismatch(errors: List[ValidationError], location: str, message: str) -> None:
        errors.append(ValidationError(
            type=ErrorType.SHAPE_MISMATCH,
            message=message,
            location=location
        ))

    @staticmethod
    def _check(value: Value, shape: Shape, location: str,
               errors: List[ValidationError], warnings: List[str]) -> None:
        if isinstance(shape, OptionShape):
            if not isinstance(value, OptionValue):
                ValidationUtils._mismatch(errors, location,
                                          f"Expected an option, got {value.kind.value}")
            elif value.is_present:
                if isinstance(value.value, OptionValue) and not value.value.is_present:
                    warnings.append(f"Present option wrapping an absent option at '{location}' "
                                    f"reads back as absent")
                ValidationUtils._check(value.value, shape.inner, location, errors, warnings)
            return

        if isinstance(shape, ScalarShape):
            if scalar_kind_of(value) != shape.kind:
                ValidationUtils._mismatch(errors, location,
                                          f"Expected {shape.kind.value}, got {value.kind.value}")
            return

        if isinstance(shape, TupleShape):
            if not isinstance(value, SequenceValue) or len(value.items) != shape.arity:
                ValidationUtils._mismatch(errors, location,
                                          f"Expected a tuple of arity {shape.arity}")
                return
            for index, (item, element) in enumerate(zip(value.items, shape.elements)):
                ValidationUtils._check(item, element, join_relative(location, str(index)),
                                       errors, warnings)
            return

        if isinstance(shape, ListShape):
            if not isinstance(value, SequenceValue):
                ValidationUtils._mismatch(errors, location, f"Expected a list, got {value.kind.value}")
                return
            if (isinstance(shape.element, OptionShape) and value.items
                    and isinstance(value.items[-1], OptionValue) and not value.items[-1].is_present):
                warnings.append(f"Trailing absent list elements at '{location}' are not stored")
            for index, item in enumerate(value.items):
                ValidationUtils._check(item, shape.element, join_relative(location, str(index)),
                                       errors, warnings)
            return

        if isinstance(shape, RecordShape):
            if not isinstance(value, RecordValue):
                ValidationUtils._mismatch(errors, location, f"Expected a record, got {value.kind.value}")
                return
            ValidationUtils._check_record(value, shape, location, errors, warnings)
            return

        if isinstance(shape, MapShape):
            if not isinstance(value, MapValue):
                ValidationUtils._mismatch(errors, location, f"Expected a map, got {value.kind.value}")
                return
            for key, item in value.entries:
                ValidationUtils._check(item, shape.value, join_relative(location, key), errors, warnings)
            return

        if isinstance(shape, EnumShape):
            if not isinstance(value, VariantValue):
                ValidationUtils._mismatch(errors, location, f"Expected a variant, got {value.kind.value}")
                return
            variant = shape.variant(value.tag)
            if variant is None:
                errors.append(ValidationError(
                    type=ErrorType.UNKNOWN_VARIANT,
                    message=f"Unknown variant {value.tag!r}, expected one of {list(shape.tags)}",
                    location=location
                ))
                return
            if variant.kind != value.variant_kind:
                ValidationUtils._mismatch(
                    errors, location,
                    f"Variant {value.tag!r} is declared {variant.kind.value}, "
                    f"got {value.variant_kind.value}"
                )
                return
            if variant.kind == VariantKind.NEWTYPE:
                ValidationUtils._check(value.payload, variant.payload,
                                       join_relative(location, "value"), errors, warnings)
            elif variant.kind != VariantKind.UNIT:
                ValidationUtils._check(value.payload, variant.payload, location, errors, warnings)
            return

        raise TypeError(f"Unsupported shape: {type(shape).__name__}")

    @staticmethod
    def _check_record(value: RecordValue, shape: RecordShape, location: str,
                      errors: List[ValidationError], warnings: List[str]) -> None:
        declared = dict(shape.fields)
        for name, _ in value.fields:
            if name not in declared:
                ValidationUtils._mismatch(errors, join_relative(location, name),
                                          f"Field {name!r} is not declared by the shape")
        for name, field_shape in shape.fields:
            item = value.get(name)
            if item is None:
                if not isinstance(field_shape, OptionShape):
                    ValidationUtils._mismatch(errors, join_relative(location, name),
                                              f"Missing field {name!r}")
                continue
            ValidationUtils._check(item, field_shape, join_relative(location, name), errors, warnings)
