from rich.console import Console
from rich.theme import Theme

# 커스텀 테마 정의
custom_theme = Theme({
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
})

console = Console(theme=custom_theme)
