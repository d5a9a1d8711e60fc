"""
Examples showing what the device analyzer accepts and what it reports.
"""
import os
import sys

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from uf_analyzer import (
    ComponentKind,
    Endpoint,
    Layer,
    Name,
    SemanticAnalyzer,
    SourceLocation,
    load_event_file,
    load_parameters,
)

HERE = os.path.dirname(os.path.abspath(__file__))


def _print_result(result) -> None:
    print(f"Device: {result.device_name}  valid={result.valid}  aborted={result.aborted}")
    for error in result.errors.errors:
        print(f"  {error}")
    if result.symbol_table is not None:
        print(f"  components: {len(result.symbol_table)}")
        print(f"  vertices:   {result.device_graph.vertex_count}")
        print(f"  edges:      {result.device_graph.edge_count}")


def example_1_valid_flow_layer():
    """Example 1: Two ports joined by a channel on the flow layer."""
    print("🔍 Example 1: Valid Flow Layer")
    print("=" * 50)

    analyzer = SemanticAnalyzer(filename="two_ports.uf")
    analyzer.on_header("two_ports")
    analyzer.on_enter_layer(Layer.FLOW)
    analyzer.on_declare_ports(["a", "b"], radius=5)
    analyzer.on_declare_channel("c1", ("a", 1), ("b", 1))
    analyzer.on_exit_layer(Layer.FLOW)

    result = analyzer.result()
    _print_result(result)
    return not result.valid


def example_2_reference_errors():
    """Example 2: Duplicated name, undefined component, undefined port."""
    print("\n🔍 Example 2: Reference Errors")
    print("=" * 50)

    analyzer = SemanticAnalyzer(filename="broken.uf")
    analyzer.on_header("broken")
    analyzer.on_declare_ports([Name("a", SourceLocation(2, 6))], radius=5)
    analyzer.on_declare_ports([Name("a", SourceLocation(3, 6))], radius=5)
    analyzer.on_declare_mixer("m1", {"bend_length": 10})
    analyzer.on_declare_channel(
        "c1",
        Endpoint(Name("z", SourceLocation(5, 12)), 1),
        Endpoint(Name("m1", SourceLocation(5, 18)), 3),
    )

    result = analyzer.result()
    _print_result(result)
    return not result.valid


def example_3_event_file():
    """Example 3: Analyze a serialized event stream with a parameter file."""
    print("\n🔍 Example 3: Event File")
    print("=" * 50)

    stream = load_event_file(os.path.join(HERE, "cell_sorter.events.json"))
    parameters = load_parameters(os.path.join(HERE, "cell_sorter.params"))
    analyzer = SemanticAnalyzer(parameters=parameters)
    result = analyzer.analyze(stream)

    _print_result(result)
    traps = result.symbol_table.components(kind=ComponentKind.LONG_CELL_TRAP)
    print(f"  cell traps: {[trap.identifier for trap in traps]}")
    print(f"  flow edges: {len(result.device_graph.edges(Layer.FLOW))}")
    return not result.valid


def run_all_examples():
    """Run all examples and show summary."""
    print("🚀 Running Device Analysis Examples")
    print("=" * 60)

    examples = [
        ("Valid Flow Layer", example_1_valid_flow_layer),
        ("Reference Errors", example_2_reference_errors),
        ("Event File", example_3_event_file),
    ]

    results = []
    for name, example_func in examples:
        has_errors = example_func()
        results.append((name, "❌ INVALID" if has_errors else "✅ VALID"))

    print("\n📋 Summary of Examples")
    print("=" * 60)
    for name, result in results:
        print(f"{result:<12} {name}")


if __name__ == "__main__":
    run_all_examples()
