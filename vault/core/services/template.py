from jinja2 import Environment, FileSystemLoader


class Renderer:
    _env: Environment | None = None

    @classmethod
    def initialize(cls, template_dir: str) -> None:
        """
        Initializes the template environment for rendering templates.

        Sets up a Jinja2 environment over ``template_dir`` with async rendering
        and automatic escaping.

        Args:
            template_dir (str): The directory containing the template files.
        """
        cls._env = Environment(
            loader=FileSystemLoader(template_dir), autoescape=True, enable_async=True
        )

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._env is not None

    @classmethod
    async def render_template(
        cls, template_name: str, context: dict | None = None
    ) -> str:
        """
        Renders a template with the given context.

        Args:
            template_name (str): The name of the template to be rendered.
            context (dict | None): Variables passed to the template.

        Returns:
            str: The rendered template as a string.

        Raises:
            TemplateNotFound: If the specified template cannot be found.
            RuntimeError: If the renderer has not been initialized.
        """
        if cls._env is None:
            raise RuntimeError("Renderer not initialized. Call initialize() first.")
        template = cls._env.get_template(template_name)
        return await template.render_async(**(context or {}))
