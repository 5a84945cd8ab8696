"""Describes the recipe-forge domain. Centres around the `GeneratedArtifact`.

What is awkward here?

- Recipes come from a webhook we do not control. It may be down, slow, or
  hand back something that is not a recipe at all.
- The text has no fixed format, so the title has to be guessed.
- Records are never modified. They are created, read, and deleted.

The webhook and the store are both injected so they can be faked.
"""
