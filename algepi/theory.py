"""
This module contains classes used to present a small symmetric monoidal theory
and to build morphism expressions (wiring expressions) from its generators.
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterator, List, Sequence, Tuple, Union


class CompositionError(ValueError):
    """
    Raised when two morphisms with mismatched arities are composed.
    """


class Ob:
    """
    An object type of a theory, eg. a compartment label such as "S".
    Objects are opaque, they are defined only by their name.

    Args:
        name: The object's name.

    """

    def __init__(self, name: str):
        assert type(name) is str, "Name must be a string, not %s." % type(name)
        self.name = name

    def __eq__(self, obj):
        return type(obj) is Ob and obj.name == self.name

    def __hash__(self):
        return hash(("Ob", self.name))

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<Ob {self.name}>"


ObSeq = Union[Ob, Sequence[Ob]]


def _to_obs(obs: ObSeq) -> Tuple[Ob, ...]:
    if isinstance(obs, Ob):
        return (obs,)

    obs = tuple(obs)
    assert all(type(o) is Ob for o in obs), f"Expected a sequence of objects, got {obs}"
    return obs


def _format_obs(obs: Tuple[Ob, ...]) -> str:
    return "⊗".join(o.name for o in obs) if obs else "I"


class HomExpr(ABC):
    """
    :meta private:
    Abstract base class for a morphism expression.
    Every expression has a domain and a codomain, which are tensor products of objects.
    """

    @property
    @abstractmethod
    def dom(self) -> Tuple[Ob, ...]:
        pass

    @property
    @abstractmethod
    def codom(self) -> Tuple[Ob, ...]:
        pass

    def generators(self) -> Iterator["Generator"]:
        """
        Iterates over the generators used in this expression, in order of appearance.
        """
        for part in getattr(self, "parts", []):
            yield from part.generators()

    def __rshift__(self, other: "HomExpr") -> "Compose":
        return compose(self, other)

    def __matmul__(self, other: "HomExpr") -> "Otimes":
        return otimes(self, other)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self}: {_format_obs(self.dom)} → {_format_obs(self.codom)}>"


class Generator(HomExpr):
    """
    A named morphism, declared in a presentation.

    Args:
        name: The morphism's name.
        dom: The input object types.
        codom: The output object types.

    """

    def __init__(self, name: str, dom: ObSeq, codom: ObSeq):
        self.name = name
        self._dom = _to_obs(dom)
        self._codom = _to_obs(codom)

    @property
    def dom(self):
        return self._dom

    @property
    def codom(self):
        return self._codom

    def generators(self):
        yield self

    def __eq__(self, obj):
        return (
            type(obj) is Generator
            and obj.name == self.name
            and obj.dom == self.dom
            and obj.codom == self.codom
        )

    def __hash__(self):
        return hash(("Generator", self.name, self.dom, self.codom))

    def __str__(self):
        return self.name


class Compose(HomExpr):
    """
    Sequential composition of morphisms, where the outputs of each part feed into the next.
    """

    def __init__(self, parts: List[HomExpr]):
        assert len(parts) > 0, "Cannot compose an empty list of morphisms."
        for first, second in zip(parts[:-1], parts[1:]):
            if first.codom != second.dom:
                msg = (
                    f"Cannot compose {first} with {second}: "
                    f"codomain {_format_obs(first.codom)} does not match domain {_format_obs(second.dom)}"
                )
                raise CompositionError(msg)

        self.parts = parts

    @property
    def dom(self):
        return self.parts[0].dom

    @property
    def codom(self):
        return self.parts[-1].codom

    def __eq__(self, obj):
        return type(obj) is Compose and obj.parts == self.parts

    def __hash__(self):
        return hash(("Compose", tuple(self.parts)))

    def __str__(self):
        return "(" + " ⋅ ".join(str(p) for p in self.parts) + ")"


class Otimes(HomExpr):
    """
    Parallel composition (monoidal product) of morphisms.
    """

    def __init__(self, parts: List[HomExpr]):
        assert len(parts) > 0, "Cannot take the product of an empty list of morphisms."
        self.parts = parts

    @property
    def dom(self):
        return tuple(o for p in self.parts for o in p.dom)

    @property
    def codom(self):
        return tuple(o for p in self.parts for o in p.codom)

    def __eq__(self, obj):
        return type(obj) is Otimes and obj.parts == self.parts

    def __hash__(self):
        return hash(("Otimes", tuple(self.parts)))

    def __str__(self):
        return "(" + " ⊗ ".join(str(p) for p in self.parts) + ")"


class Structural(HomExpr):
    """
    :meta private:
    Base class for the structural morphisms of a biproduct category,
    which exist for every object and carry no name of their own.
    """

    symbol = None

    def __init__(self, *obs: Ob):
        self.obs = _to_obs(obs)

    def __eq__(self, obj):
        return type(obj) is type(self) and obj.obs == self.obs

    def __hash__(self):
        return hash((self.symbol, self.obs))

    def __str__(self):
        return f"{self.symbol}({_format_obs(self.obs)})"


class Id(Structural):
    """
    The identity morphism on a tensor product of objects.
    """

    symbol = "id"

    @property
    def dom(self):
        return self.obs

    @property
    def codom(self):
        return self.obs


class Braid(Structural):
    """
    Swaps two objects: A⊗B → B⊗A.
    """

    symbol = "σ"

    def __init__(self, a: Ob, b: Ob):
        super().__init__(a, b)

    @property
    def dom(self):
        return self.obs

    @property
    def codom(self):
        return tuple(reversed(self.obs))


class Copy(Structural):
    """
    Duplicates an object: A → A⊗...⊗A.
    """

    symbol = "Δ"

    def __init__(self, a: Ob, n: int = 2):
        assert n >= 1, "Copy must produce at least one output."
        super().__init__(a)
        self.n = n

    @property
    def dom(self):
        return self.obs

    @property
    def codom(self):
        return self.obs * self.n

    def __eq__(self, obj):
        return super().__eq__(obj) and obj.n == self.n

    def __hash__(self):
        return hash((self.symbol, self.obs, self.n))


class Merge(Structural):
    """
    Merges copies of an object: A⊗...⊗A → A.
    """

    symbol = "∇"

    def __init__(self, a: Ob, n: int = 2):
        assert n >= 1, "Merge must consume at least one input."
        super().__init__(a)
        self.n = n

    @property
    def dom(self):
        return self.obs * self.n

    @property
    def codom(self):
        return self.obs

    def __eq__(self, obj):
        return super().__eq__(obj) and obj.n == self.n

    def __hash__(self):
        return hash((self.symbol, self.obs, self.n))


class Delete(Structural):
    """
    Discards an object: A → I.
    """

    symbol = "◊"

    @property
    def dom(self):
        return self.obs

    @property
    def codom(self):
        return ()


class Create(Structural):
    """
    Creates an object from nothing: I → A.
    """

    symbol = "□"

    @property
    def dom(self):
        return ()

    @property
    def codom(self):
        return self.obs


def compose(*exprs: HomExpr) -> Compose:
    """
    Composes morphisms in sequence, ``compose(f, g)`` is "f then g".
    Nested compositions are flattened.

    Raises:
        CompositionError: If the codomain of one morphism does not match the domain of the next.

    """
    parts = []
    for expr in exprs:
        parts += expr.parts if type(expr) is Compose else [expr]

    return Compose(parts)


def otimes(*exprs: HomExpr) -> Otimes:
    """
    Places morphisms side by side. Nested products are flattened.
    """
    parts = []
    for expr in exprs:
        parts += expr.parts if type(expr) is Otimes else [expr]

    return Otimes(parts)


def id(*obs: Ob) -> Id:
    return Id(*obs)


def braid(a: Ob, b: Ob) -> Braid:
    return Braid(a, b)


def mcopy(a: Ob, n: int = 2) -> Copy:
    return Copy(a, n)


def mmerge(a: Ob, n: int = 2) -> Merge:
    return Merge(a, n)


def delete(a: Ob) -> Delete:
    return Delete(a)


def create(a: Ob) -> Create:
    return Create(a)


class Presentation:
    """
    A finite presentation of a theory: a set of object types and a set of
    named morphisms between tensor products of those object types.

    Args:
        name: The name of the theory.

    Example:
        Declare a theory with two objects and one morphism::

            theory = Presentation("Recovery")
            I = theory.add_ob("I")
            R = theory.add_ob("R")
            recovery = theory.add_hom("recovery", I, R)

    """

    def __init__(self, name: str):
        self.name = name
        self._obs: Dict[str, Ob] = {}
        self._homs: Dict[str, Generator] = {}

    @property
    def obs(self) -> List[Ob]:
        return list(self._obs.values())

    @property
    def homs(self) -> List[Generator]:
        return list(self._homs.values())

    def add_ob(self, name: str) -> Ob:
        """
        Adds a new object type to the theory.
        """
        self._validate_new_name(name)
        ob = Ob(name)
        self._obs[name] = ob
        return ob

    def add_obs(self, *names: str) -> List[Ob]:
        return [self.add_ob(n) for n in names]

    def add_hom(self, name: str, dom: ObSeq, codom: ObSeq) -> Generator:
        """
        Adds a new morphism to the theory.

        Args:
            name: The name of the morphism.
            dom: The object types the morphism consumes.
            codom: The object types the morphism produces.

        """
        self._validate_new_name(name)
        hom = Generator(name, dom, codom)
        for ob in hom.dom + hom.codom:
            if ob.name not in self._obs:
                msg = f"Morphism '{name}' refers to object '{ob.name}' which is not in {self.name}."
                raise ValueError(msg)

        self._homs[name] = hom
        return hom

    def ob(self, name: str) -> Ob:
        return self._obs[name]

    def hom(self, name: str) -> Generator:
        return self._homs[name]

    def _validate_new_name(self, name: str):
        if name in self._obs or name in self._homs:
            raise ValueError(f"Name '{name}' is already used in {self.name}.")

    def __getitem__(self, name: str) -> Union[Ob, Generator]:
        if name in self._obs:
            return self._obs[name]

        return self._homs[name]

    def __contains__(self, name: str) -> bool:
        return name in self._obs or name in self._homs

    def __repr__(self):
        return f"<Presentation {self.name}: {len(self._obs)} objects, {len(self._homs)} morphisms>"
