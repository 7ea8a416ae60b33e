"""Host-side contracts the display plugins are written against.

This package holds the generic pieces (entities, storage, settings parsing,
URL generation, access results, routing, formatter base and registry) but no
plugin implementations; those live under `image_display.impl.current`.

Common entrypoints:

- `image_display.framework.formatter`: field formatter base class + registry
- `image_display.framework.access`: access results + access check registry
- `image_display.framework.routing`: route table that runs access checks
"""
