"""
Custom validation rules
"""

from typing import Dict, FrozenSet, Optional, Type

from graphql import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLError,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionSetNode,
    ValidationRule,
)


def measure_depth(
    selection_set: Optional[SelectionSetNode],
    fragments: Dict[str, FragmentDefinitionNode],
    depth: int = 0,
    visited: FrozenSet[str] = frozenset()
) -> int:
    """Deepest field nesting below a selection set; fragments are inlined"""
    if selection_set is None:
        return depth

    deepest = depth
    for selection in selection_set.selections:
        if isinstance(selection, FieldNode):
            deepest = max(deepest, measure_depth(selection.selection_set, fragments, depth + 1, visited))
        elif isinstance(selection, InlineFragmentNode):
            deepest = max(deepest, measure_depth(selection.selection_set, fragments, depth, visited))
        elif isinstance(selection, FragmentSpreadNode):
            name = selection.name.value
            fragment = fragments.get(name)
            # Cycles are reported by NoFragmentCyclesRule
            if fragment is None or name in visited:
                continue
            deepest = max(deepest, measure_depth(fragment.selection_set, fragments, depth, visited | {name}))
    return deepest


def depth_limit_rule(max_depth: int) -> Type[ValidationRule]:
    """Build a validation rule rejecting operations nested deeper than max_depth"""

    class DepthLimitRule(ValidationRule):

        def enter_operation_definition(self, node: OperationDefinitionNode, *_args):
            fragments = {
                definition.name.value: definition
                for definition in self.context.document.definitions
                if isinstance(definition, FragmentDefinitionNode)
            }
            depth = measure_depth(node.selection_set, fragments)
            if depth > max_depth:
                name = node.name.value if node.name else "anonymous"
                self.report_error(GraphQLError(
                    f"Operation '{name}' has depth {depth}, which exceeds the limit of {max_depth}.",
                    node
                ))

    DepthLimitRule.__name__ = f"DepthLimitRule{max_depth}"
    return DepthLimitRule
