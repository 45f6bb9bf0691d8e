"""Listener wrapper generator.

A listener attribute installs an anonymous implementation of the callback
interface. Every abstract method forwards its arguments to the user-supplied
callback, asks the runtime to render once, then hands back the callback's
result for non-void methods. A null value installs a typed null instead, since
the native setter may not accept an untyped one.
"""

from .document import CodeBlock, CodeWriter, Part, RuntimeNames, TypeName
from .models import AttributeCandidate, ClassDescriptor, MethodDescriptor


def implementation(interface: ClassDescriptor, runtime: RuntimeNames) -> CodeBlock:
    """Body of the anonymous class, one forwarding method per abstract method."""
    listener = TypeName.get(interface.name)
    w = CodeWriter()
    for index, method in enumerate(interface.abstract_methods()):
        if index:
            w.line("")
        _forwarding_method(w, method, listener, runtime)
    return w.build()


def _forwarding_method(
    w: CodeWriter,
    method: MethodDescriptor,
    listener: TypeName,
    runtime: RuntimeNames,
) -> None:
    params: list[Part] = []
    for i, type_name in enumerate(method.parameter_types):
        if i:
            params.append(", ")
        params.extend([TypeName.get(type_name), f" a{i}"])
    args = ", ".join(f"a{i}" for i in range(len(method.parameter_types)))
    returns = TypeName.get(method.return_type)

    w.begin("public ", returns, f" {method.name}(", *params, ")")
    call: tuple[Part, ...] = ("((", listener, f") arg).{method.name}({args})")
    if method.return_type == "void":
        w.statement(*call)
        w.statement(runtime.runtime, ".render()")
    else:
        w.statement(returns, " r = ", *call)
        w.statement(runtime.runtime, ".render()")
        w.statement("return r")
    w.end()


def listener_branch(
    candidate: AttributeCandidate,
    root: ClassDescriptor,
    runtime: RuntimeNames,
    exhaustive: bool = True,
) -> CodeBlock:
    """Dispatch branch installing or clearing a listener.

    An exhaustive branch on the root type needs no guard and always returns.
    Any other branch accepts only null or an instance of the listener
    interface; on a subtype it is also guarded by the target type.
    """
    method = candidate.method
    listener = TypeName.get(candidate.value_type.name)
    on_root = candidate.declaring_class is root
    if on_root:
        receiver: tuple[Part, ...] = ("v",)
    else:
        receiver = ("((", TypeName.get(candidate.declaring_class.name), ") v)")

    guarded = not (on_root and exhaustive)
    w = CodeWriter()
    if on_root and guarded:
        w.begin("if (arg == null || arg instanceof ", listener, ")")
    elif guarded:
        w.begin(
            "if (v instanceof ", TypeName.get(candidate.declaring_class.name),
            " && (arg == null || arg instanceof ", listener, "))",
        )
    w.begin("if (arg != null)")
    w.begin(*receiver, f".{method.name}(new ", listener, "()")
    w.block(implementation(candidate.value_type, runtime))
    w.end(");")
    w.next("else")
    w.statement(*receiver, f".{method.name}((", listener, ") null)")
    w.end()
    w.statement("return true")
    if guarded:
        w.end()
    return w.build()
