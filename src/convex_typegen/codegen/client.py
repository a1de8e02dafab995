"""Rendering of function argument types and the typed Convex client."""

from __future__ import annotations

from dataclasses import dataclass

from convex_typegen.codegen.rust_types import (
    STRUCT_DERIVES,
    TypeRenderer,
    is_option,
    type_name,
)
from convex_typegen.naming import NameRegistry, rust_identifier, rust_string, snake_case
from convex_typegen.types import Function

BTREE_MAP = "std::collections::BTreeMap"

SHARED_HELPERS = """\
/// A query subscription whose updates are decoded into `T`.
pub struct TypedSubscription<T> {
    inner: convex::QuerySubscription,
    _marker: std::marker::PhantomData<fn() -> T>,
}

impl<T> TypedSubscription<T> {
    pub fn new(inner: convex::QuerySubscription) -> Self {
        Self {
            inner,
            _marker: std::marker::PhantomData,
        }
    }

    /// Returns the underlying untyped subscription.
    pub fn into_inner(self) -> convex::QuerySubscription {
        self.inner
    }
}

impl<T: serde::de::DeserializeOwned> futures_core::Stream for TypedSubscription<T> {
    type Item = anyhow::Result<T>;

    fn poll_next(
        mut self: std::pin::Pin<&mut Self>,
        cx: &mut std::task::Context<'_>,
    ) -> std::task::Poll<Option<Self::Item>> {
        match futures_core::Stream::poll_next(std::pin::Pin::new(&mut self.inner), cx) {
            std::task::Poll::Ready(Some(result)) => {
                std::task::Poll::Ready(Some(decode_function_result(result)))
            }
            std::task::Poll::Ready(None) => std::task::Poll::Ready(None),
            std::task::Poll::Pending => std::task::Poll::Pending,
        }
    }
}

/// Converts a JSON value into a Convex value. Integers become `Int64`,
/// every other number `Float64`.
pub fn json_to_convex_value(value: serde_json::Value) -> convex::Value {
    match value {
        serde_json::Value::Null => convex::Value::Null,
        serde_json::Value::Bool(b) => convex::Value::Boolean(b),
        serde_json::Value::Number(n) => match n.as_i64() {
            Some(i) => convex::Value::Int64(i),
            None => convex::Value::Float64(n.as_f64().unwrap_or(f64::NAN)),
        },
        serde_json::Value::String(s) => convex::Value::String(s),
        serde_json::Value::Array(items) => {
            convex::Value::Array(items.into_iter().map(json_to_convex_value).collect())
        }
        serde_json::Value::Object(map) => convex::Value::Object(
            map.into_iter()
                .map(|(key, value)| (key, json_to_convex_value(value)))
                .collect(),
        ),
    }
}

/// Converts a Convex value into a JSON value. Bytes become an array of numbers.
pub fn convex_value_to_json(value: convex::Value) -> serde_json::Value {
    match value {
        convex::Value::Null => serde_json::Value::Null,
        convex::Value::Int64(i) => serde_json::Value::from(i),
        convex::Value::Float64(f) => serde_json::Number::from_f64(f)
            .map(serde_json::Value::Number)
            .unwrap_or(serde_json::Value::Null),
        convex::Value::Boolean(b) => serde_json::Value::Bool(b),
        convex::Value::String(s) => serde_json::Value::String(s),
        convex::Value::Bytes(bytes) => {
            serde_json::Value::Array(bytes.into_iter().map(serde_json::Value::from).collect())
        }
        convex::Value::Array(items) => {
            serde_json::Value::Array(items.into_iter().map(convex_value_to_json).collect())
        }
        convex::Value::Object(map) => serde_json::Value::Object(
            map.into_iter()
                .map(|(key, value)| (key, convex_value_to_json(value)))
                .collect(),
        ),
    }
}

fn args_to_convex(
    args: std::collections::BTreeMap<String, serde_json::Value>,
) -> std::collections::BTreeMap<String, convex::Value> {
    args.into_iter()
        .map(|(key, value)| (key, json_to_convex_value(value)))
        .collect()
}

fn decode_function_result<T: serde::de::DeserializeOwned>(
    result: convex::FunctionResult,
) -> anyhow::Result<T> {
    match result {
        convex::FunctionResult::Value(value) => {
            Ok(serde_json::from_value(convex_value_to_json(value))?)
        }
        convex::FunctionResult::ErrorMessage(message) => Err(anyhow::anyhow!(message)),
        convex::FunctionResult::ConvexError(error) => Err(anyhow::anyhow!("{:?}", error)),
    }
}"""


def function_context(function: Function) -> str:
    """``games`` + ``getByStatus`` -> ``GamesGetByStatus``."""
    return type_name(function.file_name) + type_name(function.name)


@dataclass
class ClientMethod:
    """One generated client method and the call it makes."""

    name: str
    call: str
    function: Function
    args_type: str
    has_args: bool
    return_type: str | None
    subscribe: bool = False

    @property
    def result_type(self) -> str:
        if self.subscribe:
            if self.return_type is None:
                return "convex::QuerySubscription"
            return f"TypedSubscription<{self.return_type}>"
        if self.return_type is None:
            return "convex::FunctionResult"
        return self.return_type

    @property
    def signature(self) -> str:
        params = "&mut self"
        if self.has_args:
            params += f", args: {self.args_type}"
        return f"async fn {self.name}({params}) -> anyhow::Result<{self.result_type}>"

    def doc(self) -> str:
        kind = self.function.kind.value
        if self.subscribe:
            return f"/// Subscribes to the `{self.function.path}` {kind}."
        return f"/// Calls the `{self.function.path}` {kind}."

    def body(self) -> list[str]:
        lines = []
        if not self.has_args:
            lines.append(f"let args = {self.args_type} {{}};")
        invoke = (
            f"self.{self.call}({self.args_type}::FUNCTION_PATH, "
            "args_to_convex(args.into())).await"
        )
        if self.return_type is None:
            lines.append(invoke)
        elif self.subscribe:
            lines.append(f"let subscription = {invoke}?;")
            lines.append("Ok(TypedSubscription::new(subscription))")
        else:
            lines.append(f"let result = {invoke}?;")
            lines.append("decode_function_result(result)")
        return lines


class ClientEmitter:
    """Emits argument types and collects the client methods of functions."""

    def __init__(self, renderer: TypeRenderer) -> None:
        self.renderer = renderer
        self.methods: list[ClientMethod] = []
        self._method_names = NameRegistry()

    def emit_function(self, function: Function, args_type: str) -> None:
        context = function_context(function)
        self._emit_args(function, args_type, context)

        return_type = None
        if function.returns is not None:
            return_type = self.renderer.render(function.returns, context + "Return")

        if not function.kind.has_client_method:
            return
        base = f"{snake_case(function.file_name)}_{snake_case(function.name)}"
        call = function.kind.base.value
        has_args = bool(function.params)
        if function.kind.is_query:
            self._add(f"query_{base}", call, function, args_type, has_args, return_type)
            self._add(
                f"subscribe_{base}",
                "subscribe",
                function,
                args_type,
                has_args,
                return_type,
                subscribe=True,
            )
        else:
            self._add(base, call, function, args_type, has_args, return_type)

    def _add(
        self,
        name: str,
        call: str,
        function: Function,
        args_type: str,
        has_args: bool,
        return_type: str | None,
        subscribe: bool = False,
    ) -> None:
        self.methods.append(
            ClientMethod(
                name=self._method_names.claim(rust_identifier(name)),
                call=call,
                function=function,
                args_type=args_type,
                has_args=has_args,
                return_type=return_type,
                subscribe=subscribe,
            )
        )

    def _emit_args(self, function: Function, args_type: str, context: str) -> None:
        slot = self.renderer.reserve()
        properties = tuple((p.name, p.type) for p in function.params)
        fields = self.renderer.fields(properties, context, raw_names=True)
        optional = {p.name for p in function.params if is_option(p.type)}

        lines = [
            f"/// Arguments of the `{function.path}` {function.kind.value}.",
            STRUCT_DERIVES,
            "#[allow(non_snake_case)]",
        ]
        if fields:
            lines.append(f"pub struct {args_type} {{")
            for field in fields:
                lines.extend("    " + line for line in field.render())
            lines.append("}")
        else:
            lines.append(f"pub struct {args_type} {{}}")
        lines.append("")
        lines.append(f"impl {args_type} {{")
        lines.append(
            f"    pub const FUNCTION_PATH: &'static str = {rust_string(function.path)};"
        )
        lines.append("}")
        lines.append("")
        lines.append(f"impl From<{args_type}> for {BTREE_MAP}<String, serde_json::Value> {{")
        lines.append(f"    fn from(_args: {args_type}) -> Self {{")
        if not fields:
            lines.append(f"        {BTREE_MAP}::new()")
        else:
            lines.append(f"        let mut map = {BTREE_MAP}::new();")
            for field in fields:
                key = rust_string(field.key)
                if field.key in optional:
                    lines.append(f"        if let Some(val) = _args.{field.ident} {{")
                    lines.append(
                        f"            map.insert({key}.to_string(), "
                        "serde_json::to_value(val).unwrap());"
                    )
                    lines.append("        }")
                else:
                    lines.append(
                        f"        map.insert({key}.to_string(), "
                        f"serde_json::to_value(_args.{field.ident}).unwrap());"
                    )
            lines.append("        map")
        lines.append("    }")
        lines.append("}")
        self.renderer.fill(slot, "\n".join(lines))

    def render_client(self) -> str:
        """Render the ``ConvexApi`` trait and its implementation."""
        trait = [
            "/// Typed access to the generated Convex functions.",
            "#[allow(async_fn_in_trait)]",
            "pub trait ConvexApi {",
        ]
        impl = ["impl ConvexApi for convex::ConvexClient {"]
        for i, method in enumerate(self.methods):
            if i:
                trait.append("")
                impl.append("")
            trait.append(f"    {method.doc()}")
            trait.append(f"    {method.signature};")
            impl.append(f"    {method.signature} {{")
            impl.extend(f"        {line}" for line in method.body())
            impl.append("    }")
        trait.append("}")
        impl.append("}")
        return "\n".join(trait) + "\n\n" + "\n".join(impl)


__all__ = ["SHARED_HELPERS", "ClientEmitter", "ClientMethod", "function_context"]
