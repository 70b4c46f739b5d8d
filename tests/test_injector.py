from typing import Protocol

import pytest

from aodi import (
    ConstructTargetError,
    DependencyEdge,
    Injector,
    InvalidInjectableError,
    InvalidProviderError,
    InvalidProviderObjectError,
    Provider,
    ProviderNotFoundError,
    Token,
    declare_dependency,
    declare_provider,
    dependencies,
    inject,
    provides,
    singleton,
)


class Foo: ...
class Bar: ...


# ============================================================
# provide
# ============================================================

class TestProvide:
    def test_class_as_shorthand_for_itself(self, injector):
        injector.provide(Foo)
        assert injector.providers.get(Foo) == Provider(module=Foo)

    def test_class_token_with_class_resolver(self, injector):
        injector.provide(Foo, Bar)
        assert injector.providers.get(Foo) == Provider(module=Bar)

    def test_token_without_resolver_is_rejected(self, injector):
        with pytest.raises(InvalidInjectableError):
            injector.provide(Token())

    def test_token_with_class_resolver(self, injector):
        token = Token()
        injector.provide(token, Bar)
        assert injector.providers.get(token) == Provider(module=Bar)

    def test_provide_returns_injector_for_chaining(self, injector):
        assert injector.provide(Foo).provide(Bar) is injector
        assert injector.has(Foo) and injector.has(Bar)

    def test_provide_replaces_previous_entry(self, injector):
        token = Token()
        injector.provide(token, value=1).provide(token, value=2)
        assert injector.providers.get(token).value == 2

    def test_mapping_and_keyword_forms(self, injector):
        t1, t2 = Token(), Token()
        injector.provide(t1, {"value": "foo"})
        injector.provide(t2, factory=len, dependencies=[t1])
        assert injector.providers.get(t1) == Provider(value="foo")
        assert injector.providers.get(t2) == Provider(factory=len, dependencies=(t1,))

    def test_invalid_token_is_rejected(self, injector):
        with pytest.raises(InvalidInjectableError):
            injector.provide("foo", Bar)

    def test_registries_are_not_shared(self):
        a, b = Injector(), Injector()
        a.provide(Foo)
        assert a.has(Foo)
        assert not b.has(Foo)

    def test_provider_instance_is_copied_on_registration(self, injector):
        descriptor = Provider.of_factory(object, singleton=True)
        injector.provide(Foo, descriptor)
        assert injector.providers.get(Foo) == descriptor
        assert injector.providers.get(Foo) is not descriptor

    @pytest.mark.asyncio
    async def test_shared_provider_instance_keeps_singletons_apart(self):
        shared = Provider.of_factory(object, singleton=True)
        a = Injector().provide(Foo, shared)
        b = Injector().provide(Foo, shared)
        t1, t2 = Token(), Token()
        a.provide(t1, shared).provide(t2, shared)

        from_a = await a.get(Foo)
        assert await b.get(Foo) is not from_a
        assert await a.get(t1) is not await a.get(t2)
        assert await a.get(Foo) is from_a
        assert shared.resolved is False


# ============================================================
# provider
# ============================================================

class TestProviderObjects:
    def test_instance_field_holding_class_is_module(self, injector):
        token = Token()

        class Providers:
            def __init__(self):
                self.foo = Bar

        declare_provider(Providers, "foo", token=token)
        injector.provider(Providers())
        assert injector.providers.get(token) == Provider(module=Bar)

    def test_method_is_bound_factory(self, injector):
        token = Token()

        class Providers:
            def __init__(self):
                self.suffix = "!"

            @provides(token)
            def greeting(self):
                return "hi" + self.suffix

        obj = Providers()
        injector.provider(obj)
        factory = injector.providers.get(token).factory
        assert callable(factory)
        assert factory.__self__ is obj
        assert factory() == "hi!"

    def test_non_callable_member_is_value(self, injector):
        token = Token()

        class Providers:
            foo = provides(token)("BAR")

        injector.provider(Providers())
        assert injector.providers.get(token).value == "BAR"

    def test_dependencies_and_singleton_are_carried(self, injector):
        token, dep = Token(), Token()

        class Providers:
            @provides(token)
            @singleton
            @dependencies(dep)
            def make(self, d):
                return d

        injector.provider(Providers())
        p = injector.providers.get(token)
        assert p.dependencies == (dep,)
        assert p.singleton is True

    def test_function_valued_field_is_factory(self, injector):
        token = Token()

        class Providers:
            def __init__(self):
                self.make = lambda: 42

        declare_provider(Providers, "make", token=token)
        injector.provider(Providers())
        assert injector.providers.get(token).factory() == 42

    def test_inherited_provider_members(self, injector):
        t1, t2 = Token(), Token()

        class Base:
            @provides(t1)
            def one(self):
                return 1

        class Derived(Base):
            two = provides(t2)(2)

        injector.provider(Derived())
        assert injector.has(t1) and injector.has(t2)

    def test_object_without_metadata_is_rejected(self, injector):
        class NotAProvider: ...

        with pytest.raises(InvalidProviderObjectError):
            injector.provider(NotAProvider())

    def test_member_without_token_is_rejected(self, injector):
        class Providers:
            @singleton
            def make(self):
                return 1

        with pytest.raises(InvalidProviderError, match="declares no token"):
            injector.provider(Providers())

    def test_provider_returns_injector(self, injector):
        class Providers:
            foo = provides(Token())(1)

        assert injector.provider(Providers()) is injector


# ============================================================
# resolve_dependency / resolve_dependencies / get
# ============================================================

class TestResolution:
    @pytest.mark.asyncio
    async def test_missing_provider_rejects(self, injector):
        with pytest.raises(ProviderNotFoundError):
            await injector.resolve_dependency(Token())

    @pytest.mark.asyncio
    async def test_value_provider(self, injector):
        token = Token()
        injector.provide(token, value=42)
        assert await injector.resolve_dependency(token) == 42

    @pytest.mark.asyncio
    async def test_none_is_a_valid_value(self, injector):
        token = Token()
        injector.provide(token, value=None)
        assert await injector.resolve_dependency(token) is None

    @pytest.mark.asyncio
    async def test_singleton_factory_returns_same_object(self, injector):
        token = Token()
        injector.provide(token, factory=lambda: {}, singleton=True)
        first = await injector.resolve_dependency(token)
        assert isinstance(first, dict)
        assert await injector.resolve_dependency(token) is first
        assert injector.providers.get(token).value is first

    @pytest.mark.asyncio
    async def test_non_singleton_factory_runs_every_time(self, injector):
        token = Token()
        calls = []

        def make():
            calls.append(1)
            return object()

        injector.provide(token, factory=make)
        a = await injector.get(token)
        b = await injector.get(token)
        assert len(calls) == 2
        assert a is not b

    @pytest.mark.asyncio
    async def test_singleton_module_returns_same_instance(self, injector):
        injector.provide(Foo, module=Foo, singleton=True)
        assert await injector.get(Foo) is await injector.get(Foo)

    @pytest.mark.asyncio
    async def test_non_singleton_module_builds_fresh_instances(self, injector):
        injector.provide(Foo)
        assert await injector.get(Foo) is not await injector.get(Foo)

    @pytest.mark.asyncio
    async def test_value_short_circuits_factory_and_module(self, injector):
        token = Token()

        def boom():
            raise AssertionError("factory must not run")

        injector.provide(token, Provider(value=7, factory=boom, module=Foo))
        assert await injector.get(token) == 7

    @pytest.mark.asyncio
    async def test_factory_wins_over_module(self, injector):
        token = Token()
        injector.provide(token, factory=lambda: "from factory", module=Foo)
        assert await injector.get(token) == "from factory"

    @pytest.mark.asyncio
    async def test_factory_dependencies_passed_in_order(self, injector):
        t1, t2, t3 = Token(), Token(), Token()
        injector.provide(t1, value="a").provide(t2, value="b")
        injector.provide(t3, factory=lambda x, y: x + y, dependencies=[t2, t1])
        assert await injector.get(t3) == "ba"

    @pytest.mark.asyncio
    async def test_async_factory_is_awaited(self, injector):
        token, dep = Token(), Token()

        async def make(d):
            return d * 2

        injector.provide(dep, value=21).provide(token, factory=make, dependencies=[dep])
        assert await injector.get(token) == 42

    @pytest.mark.asyncio
    async def test_resolve_dependencies_builds_keyed_dict(self, injector):
        t1, t2 = Token(), Token()
        injector.provide(t1, value="foo").provide(t2, value="bar")
        bag = await injector.resolve_dependencies([DependencyEdge("FOO", t1), DependencyEdge("BAR", t2)])
        assert bag == {"FOO": "foo", "BAR": "bar"}

    @pytest.mark.asyncio
    async def test_resolve_dependencies_empty(self, injector):
        assert await injector.resolve_dependencies([]) == {}

    @pytest.mark.asyncio
    async def test_get_constructs_self_provided_class(self, injector):
        injector.provide(Foo)
        assert isinstance(await injector.get(Foo), Foo)

    @pytest.mark.asyncio
    async def test_get_uses_class_resolver(self, injector):
        injector.provide(Foo, Bar)
        assert isinstance(await injector.get(Foo), Bar)

    @pytest.mark.asyncio
    async def test_get_token_with_class_resolver(self, injector):
        token = Token()
        injector.provide(token, Bar)
        assert isinstance(await injector.get(token), Bar)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad", [True, "foo", "x", 123, None, object(), {}, lambda: None])
    async def test_get_rejects_non_injectables(self, injector, bad):
        with pytest.raises(InvalidInjectableError):
            await injector.get(bad)

    @pytest.mark.asyncio
    async def test_unresolvable_then_registered(self, injector):
        token = Token("late")
        with pytest.raises(ProviderNotFoundError) as exc:
            await injector.get(token)
        assert exc.value.token is token
        injector.provide(token, value="ok")
        assert await injector.get(token) == "ok"

    @pytest.mark.asyncio
    async def test_factory_errors_propagate(self, injector):
        token = Token()

        def broken():
            raise RuntimeError("boom")

        injector.provide(token, factory=broken, singleton=True)
        with pytest.raises(RuntimeError, match="boom"):
            await injector.get(token)
        assert injector.providers.get(token).resolved is False

    @pytest.mark.asyncio
    async def test_missing_nested_dependency(self, injector):
        token, missing = Token(), Token("missing")
        injector.provide(token, factory=lambda m: m, dependencies=[missing])
        with pytest.raises(ProviderNotFoundError) as exc:
            await injector.get(token)
        assert exc.value.token is missing

    @pytest.mark.asyncio
    async def test_provider_object_end_to_end(self, injector):
        my_token, other_token = Token(), Token()

        class MyProvider:
            foo = provides(other_token)("foo")

            @provides(my_token)
            @dependencies(other_token)
            def bar(self, other):
                return other + "bar"

        injector.provider(MyProvider())
        assert await injector.get(my_token) == "foobar"

    @pytest.mark.asyncio
    async def test_resolution_is_logged(self, injector, aodi_log):
        token = Token("logged")
        injector.provide(token, factory=lambda: 1, singleton=True)
        await injector.get(token)
        assert any("Provided Token('logged') via factory" in m for m in aodi_log)
        assert any("Cached singleton Token('logged')" in m for m in aodi_log)


# ============================================================
# create
# ============================================================

class TestCreate:
    @pytest.mark.asyncio
    async def test_constructs_class(self, injector):
        assert isinstance(await injector.create(Foo), Foo)

    @pytest.mark.asyncio
    async def test_passes_extra_params_to_constructor(self, injector):
        class Target:
            def __init__(self, **params):
                self.params = params

        inst = await injector.create(Target, {"foo": 42})
        assert inst.params == {"foo": 42}

    @pytest.mark.asyncio
    async def test_mixes_resolved_values_and_extra_params(self, injector):
        token = Token()
        injector.provide(token, value="BAR")

        class Target:
            bar = inject(token)

            def __init__(self, foo, bar):
                self.foo = foo
                self.bar = bar

        inst = await injector.create(Target, {"foo": 42})
        assert (inst.foo, inst.bar) == (42, "BAR")

    @pytest.mark.asyncio
    async def test_mixes_resolved_factories(self, injector):
        token = Token()
        injector.provide(token, factory=lambda: "BAR")

        class Target:
            def __init__(self, foo, bar):
                self.foo, self.bar = foo, bar

        declare_dependency(Target, "bar", token)
        inst = await injector.create(Target, {"foo": 42})
        assert (inst.foo, inst.bar) == (42, "BAR")

    @pytest.mark.asyncio
    async def test_resolves_dependencies_of_dependencies(self, injector):
        token, token2 = Token(), Token()
        injector.provide(token2, value=42)
        injector.provide(token, factory=lambda dep: dep + 42, dependencies=[token2])

        class Target:
            bar = inject(token)

        inst = await injector.create(Target)
        assert inst.bar == 84

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad", [True, "foo", 123, None, object(), {}, Token(), lambda: None])
    async def test_rejects_non_classes(self, injector, bad):
        with pytest.raises(ConstructTargetError):
            await injector.create(bad)

    @pytest.mark.asyncio
    async def test_assigns_dependencies_without_constructor(self, injector):
        token = Token()
        injector.provide(token, value=42)

        class Target:
            foo = inject(token)

        inst = await injector.create(Target)
        assert inst.foo == 42
        assert vars(inst) == {"foo": 42}

    @pytest.mark.asyncio
    async def test_extra_params_override_resolved(self, injector):
        token = Token()
        injector.provide(token, value=42)

        class Target:
            foo = inject(token)

        inst = await injector.create(Target, {"foo": 99})
        assert inst.foo == 99

    @pytest.mark.asyncio
    async def test_constructor_owns_assignment(self, injector):
        token = Token()
        injector.provide(token, value=42)

        class Target:
            foo = inject(token)

            def __init__(self, foo):
                self.seen = foo

        inst = await injector.create(Target)
        assert inst.seen == 42
        assert not hasattr(inst, "foo")

    @pytest.mark.asyncio
    async def test_inherited_constructor_receives_params(self, injector):
        token = Token()
        injector.provide(token, value="v")

        class Base:
            def __init__(self, **kwargs):
                self.kwargs = kwargs

        class Child(Base):
            dep = inject(token)

        inst = await injector.create(Child)
        assert inst.kwargs == {"dep": "v"}

    @pytest.mark.asyncio
    async def test_subclass_gets_parent_and_own_dependencies(self, injector):
        t1, t2 = Token(), Token()
        injector.provide(t1, value=1).provide(t2, value=2)

        class Parent:
            k1 = inject(t1)

        class Child(Parent):
            k2 = inject(t2)

        inst = await injector.create(Child)
        assert (inst.k1, inst.k2) == (1, 2)
        parent = await injector.create(Parent)
        assert vars(parent) == {"k1": 1}

    @pytest.mark.asyncio
    async def test_subclass_without_own_dependencies(self, injector):
        token = Token()
        injector.provide(token, value="inherited")

        class Parent:
            dep = inject(token)

        class Child(Parent): ...

        inst = await injector.create(Child)
        assert inst.dep == "inherited"

    @pytest.mark.asyncio
    async def test_class_dependency_is_constructed(self, injector):
        class Repository: ...

        class Service:
            repo = inject(Repository)

        injector.provide(Repository, singleton=True, module=Repository)
        injector.provide(Service)
        service = await injector.get(Service)
        assert isinstance(service.repo, Repository)
        assert service.repo is (await injector.get(Service)).repo

    @pytest.mark.asyncio
    async def test_parent_edge_declared_after_child_edge(self, injector):
        t1, t2 = Token(), Token()
        injector.provide(t1, value=1).provide(t2, value=2)

        class Parent: ...
        class Child(Parent): ...

        declare_dependency(Child, "k2", t2)
        declare_dependency(Parent, "k1", t1)
        injector.provide(Child)

        assert vars(await injector.get(Child)) == {"k1": 1, "k2": 2}

    @pytest.mark.asyncio
    async def test_parent_edge_declared_after_child_was_created(self, injector):
        t1, t2 = Token(), Token()
        injector.provide(t1, value=1).provide(t2, value=2)

        class Parent: ...

        class Child(Parent):
            k2 = inject(t2)

        assert vars(await injector.create(Child)) == {"k2": 2}
        declare_dependency(Parent, "k1", t1)
        assert vars(await injector.create(Child)) == {"k1": 1, "k2": 2}

    @pytest.mark.asyncio
    async def test_multiple_bases_contribute_dependencies(self, injector):
        t1, t2 = Token(), Token()
        injector.provide(t1, value=1).provide(t2, value=2)

        class A:
            a = inject(t1)

        class B:
            b = inject(t2)

        class C(A, B): ...

        assert vars(await injector.create(C)) == {"a": 1, "b": 2}

    @pytest.mark.asyncio
    async def test_protocol_implementation_receives_attributes(self, injector):
        class Notifier(Protocol):
            def notify(self, message: str) -> None: ...

        token = Token()
        injector.provide(token, value="smtp://")

        class EmailNotifier(Notifier):
            url = inject(token)

            def notify(self, message: str) -> None:
                pass

        inst = await injector.create(EmailNotifier)
        assert inst.url == "smtp://"
