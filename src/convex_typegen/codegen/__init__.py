"""Rust code generation for extracted schemas and functions."""

from convex_typegen.codegen.emitter import RustEmitter, render_module

__all__ = ["RustEmitter", "render_module"]
