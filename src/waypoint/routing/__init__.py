"""Routing — pattern compiler, matchers, route table builder, and router.

Routes are registered on a mutable ``RouterBuilder`` and frozen into an
immutable ``Router`` by ``build()``.
"""
