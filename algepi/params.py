"""
Loading and validation of model parameters.
"""
import re
from copy import deepcopy
from typing import Callable, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from algepi.solver import SolverType

Validator = Callable[[dict], None]
PathOrDict = Union[dict, str]


class ParamModel(BaseModel):
    """
    Config for parameter models.
    """

    # Forbid additional arguments to prevent extraneous parameter specification
    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)


class Time(ParamModel):
    """
    Parameters to define the model time period and evaluation steps.
    """

    start: float
    end: float
    step: float = 1.0

    @model_validator(mode="after")
    def check_period(self):
        assert self.end > self.start, f"End time: {self.end} before start: {self.start}"
        assert self.step > 0, f"Time step must be positive: {self.step}"
        return self


class SolverSettings(ParamModel):
    """
    Settings for the ODE, SDE and jump process solvers.
    """

    ode_solver: str = SolverType.SOLVE_IVP
    ode_args: Dict[str, Union[float, str]] = Field(default_factory=dict)
    sde_step_size: float = 0.01
    positive_domain: bool = True
    max_events: int = 10 ** 7

    @field_validator("ode_solver")
    @classmethod
    def check_ode_solver(cls, value):
        solvers = [
            SolverType.ODE_INT,
            SolverType.SOLVE_IVP,
            SolverType.EULER,
            SolverType.RUNGE_KUTTA,
        ]
        assert value in solvers, f"ODE solver must be one of {solvers}, got {value}"
        return value


class Parameters(ParamModel):
    # Metadata
    description: Optional[str] = None
    time: Time
    # Values
    initial_population: Dict[str, float]
    rates: Dict[str, float]
    seed: Optional[int] = None
    solver: SolverSettings = Field(default_factory=SolverSettings)

    @field_validator("initial_population")
    @classmethod
    def check_population(cls, value):
        for name, pop in value.items():
            assert pop >= 0, f"Population for {name} cannot be negative: {pop}"
        return value

    @field_validator("rates")
    @classmethod
    def check_rates(cls, value):
        for name, rate in value.items():
            assert rate >= 0, f"Rate for {name} must be >= 0: {rate}"
        return value


def validate_params(params: dict):
    Parameters(**params)


class Params:
    """
    A set of parameters that can be loaded by a model.
    Parameters are loaded from a YAML file or a dict, and can be layered with updates.
    """

    def __init__(self, data: PathOrDict, validator: Optional[Validator] = validate_params):
        self._params = []
        self._validator = validator
        self._update(data)

    def to_dict(self) -> dict:
        """
        Returns params as a dict.
        """
        final_params = {}
        for params in self._params:
            final_params = merge_dicts(deepcopy(params), final_params)

        return final_params

    def build(self) -> Parameters:
        """
        Returns the validated parameters.
        """
        return Parameters(**self.to_dict())

    def update(self, new_params: PathOrDict, validate: bool = True) -> "Params":
        """
        Load some more parameters, overwriting existing where conflicts occur.
        Returns a copy of the current params.
        """
        self_copy = self.copy()
        self_copy._update(new_params, validate)
        return self_copy

    def update_values(self, updates: Dict[str, object]) -> "Params":
        """
        Returns a copy of the params with string based update requests applied, see ``update_params``.
        """
        return self.update(update_params(self.to_dict(), updates))

    def copy(self) -> "Params":
        self_copy = Params({}, validator=None)
        self_copy._params = deepcopy(self._params)
        self_copy._validator = self._validator
        return self_copy

    def _update(self, new_params: PathOrDict, validate: bool = True):
        params = self._load_path_or_dict(new_params)
        self._params = [*self._params, params]
        if self._validator and validate:
            self._validator(self.to_dict())

    def _load_path_or_dict(self, new_params: PathOrDict) -> dict:
        t = type(new_params)
        if t is str:
            # It's a path (hopefully), load it.
            return read_yaml_file(new_params)
        elif t is dict:
            # It's a dict so we don't need to do anything.
            return new_params
        else:
            raise ValueError(f"Loaded parameter data must be a string or dict, got {t}")

    def __repr__(self):
        return "Params" + repr(self.to_dict())

    def __getitem__(self, k):
        return self.to_dict()[k]


def read_yaml_file(path: str) -> dict:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def merge_dicts(src: dict, dest: dict) -> dict:
    """
    Merge src dict into dest dict.
    """
    for key, value in src.items():
        if isinstance(value, dict):
            # Get node or create one
            node = dest.setdefault(key, {})
            if node is None:
                dest[key] = value
            else:
                merge_dicts(value, node)
        else:
            dest[key] = value

    return dest


def update_params(params: dict, updates: dict) -> dict:
    """
    Update parameter dict according to string based update requests in update dict.
    Update requests made as follows:

        - dict entries updated as "key": val
        - nested dict entries updated as "key1.key2": val
        - array entries updated as "arr(0)": 1

    Example

        params = {"foo": 1, "bar" {"baz": 2}, "bing": [1, 2]}
        updates = {"foo": 2, "bar.baz": 3, "bing(1)": 4}
        returns {"foo": 2, "bar" {"baz": 3}, "bing": [1, 4]}

    """
    ps = deepcopy(params)
    for key, val in updates.items():
        ps = _update_params(ps, key, val)

    return ps


# Regex to match an array update request eg. "foo(1)"
ARRAY_REQUEST_REGEX = r"^\w+\(-?\d+\)$"


def _update_params(params: dict, update_key: str, update_val) -> dict:
    ps = deepcopy(params)
    keys = update_key.split(".")
    current_key, nested_keys = keys[0], keys[1:]
    is_arr_update = re.match(ARRAY_REQUEST_REGEX, current_key)
    is_nested_update = bool(nested_keys)
    if is_arr_update and is_nested_update:
        # Array item replacement followed by nested dictionary replacement.
        key, idx_str = current_key.replace(")", "").split("(")
        idx = int(idx_str)
        child_key = ".".join(nested_keys)
        ps[key][idx] = _update_params(ps[key][idx], child_key, update_val)
    elif is_arr_update:
        # Array item replacement.
        key, idx_str = current_key.replace(")", "").split("(")
        ps[key][int(idx_str)] = update_val
    elif is_nested_update:
        # Nested dictionary replacement.
        child_key = ".".join(nested_keys)
        ps[current_key] = _update_params(ps.get(current_key, {}), child_key, update_val)
    else:
        # Simple key lookup, just replace key with val.
        ps[current_key] = update_val

    return ps
