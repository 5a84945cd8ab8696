FALLBACK_RECIPE = """
Recipe for {prompt}

Our recipe generator is unavailable right now, so we could not write this
recipe for you.

#### 📝 Ingredients

- The ingredients from your request: {prompt}
- Salt, pepper, and a little oil

#### ✅ Instructions

1. **Prepare** your ingredients, washing and chopping as needed.
2. **Cook** them gently, tasting and seasoning as you go.
3. **Serve** warm.

Please try again in a few minutes for a complete recipe.
""".strip()


ERROR_RECIPE = """
Recipe for {prompt}

Something went wrong while creating this recipe.

We have kept your request ({prompt}) so you can try again. If the problem
continues, try rewording the request or listing fewer ingredients.
""".strip()


class PlaceholderRecipe:
    def __init__(
        self,
        fallback: str | None = None,
        error: str | None = None,
    ) -> None:
        self.fallback = FALLBACK_RECIPE if fallback is None else fallback
        self.error = ERROR_RECIPE if error is None else error

    def for_fallback(self, prompt: str) -> str:
        return self.fallback.format(prompt=prompt)

    def for_error(self, prompt: str) -> str:
        return self.error.format(prompt=prompt)
