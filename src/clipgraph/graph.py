"""Filter graph as a DAG of nodes joined by stream labels.

Builders add nodes; `serialize()` renders FFmpeg's filter_complex syntax
and `check()` verifies every label is produced once and consumed once.
"""

import re
from dataclasses import dataclass, field

from .errors import GraphError

# Stream specifiers of the command's inputs ("0:v", "3:a"). They are
# produced outside the graph and may feed more than one node.
_INPUT_STREAM = re.compile(r"^\d+:[va](:\d+)?$")


def is_input_stream(label: str) -> bool:
    return bool(_INPUT_STREAM.match(label))


@dataclass(frozen=True)
class FilterNode:
    """One filter chain with its input and output labels (no brackets)."""

    operation: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()

    def serialize(self) -> str:
        ins = "".join(f"[{label}]" for label in self.inputs)
        outs = "".join(f"[{label}]" for label in self.outputs)
        return f"{ins}{self.operation}{outs}"


@dataclass
class FilterGraph:
    nodes: list[FilterNode] = field(default_factory=list)

    def add(self, operation: str, inputs=(), outputs=()) -> FilterNode:
        node = FilterNode(operation, tuple(inputs), tuple(outputs))
        self.nodes.append(node)
        return node

    def __len__(self):
        return len(self.nodes)

    def serialize(self) -> str:
        return ";".join(node.serialize() for node in self.nodes)

    def check(self, final_labels=()) -> None:
        """Validate label wiring.

        Args:
            final_labels: Labels consumed by `-map` rather than by a node.

        Raises:
            GraphError: A label is produced twice, consumed twice, consumed
                before it is produced, or produced and left dangling.
        """
        produced = set()
        consumed = set()
        errors = []

        for index, node in enumerate(self.nodes):
            for label in node.inputs:
                if is_input_stream(label):
                    continue
                if label not in produced:
                    errors.append(
                        f"Node {index} ({node.operation.split('=')[0]}): "
                        f"consumes [{label}] before it is produced"
                    )
                if label in consumed:
                    errors.append(
                        f"Node {index} ({node.operation.split('=')[0]}): "
                        f"[{label}] is consumed more than once"
                    )
                consumed.add(label)
            for label in node.outputs:
                if label in produced:
                    errors.append(
                        f"Node {index} ({node.operation.split('=')[0]}): "
                        f"[{label}] is produced more than once"
                    )
                produced.add(label)

        finals = set(final_labels)
        for label in finals:
            if label not in produced:
                errors.append(f"Output [{label}] is never produced")
            elif label in consumed:
                errors.append(f"Output [{label}] is also consumed inside the graph")
        for label in sorted(produced - consumed - finals):
            errors.append(f"[{label}] is produced but never consumed")

        if errors:
            raise GraphError("Invalid filter graph:\n  " + "\n  ".join(errors))
