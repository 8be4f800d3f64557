"""Form fill engine.

Modules:

* ``models`` — ``FieldSpec``, ``FieldHooks``, ``FormFillOptions``, ``InputKind``
  and the pure ``classify`` function.
* ``engine`` — ``FormFillEngine`` (``fill_form``, ``fill_field``,
  ``read_form_values``) and the built-in fill strategies.
"""

from webrobot.forms.engine import FormFillEngine
from webrobot.forms.models import FieldHooks, FieldSpec, FormFillOptions, InputKind, classify

__all__ = [
    "FieldHooks",
    "FieldSpec",
    "FormFillEngine",
    "FormFillOptions",
    "InputKind",
    "classify",
]
