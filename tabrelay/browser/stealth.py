"""Anti-detection profile applied to every new tab before navigation."""
from dataclasses import dataclass, field

ACCEPT_LANGUAGE = "en-US,en;q=0.9"


@dataclass(frozen=True)
class StealthProfile:
    """Browser fingerprint a tab presents to the sites it visits."""

    platform: str = "Linux x86_64"
    languages: tuple[str, ...] = ("en-US", "en")
    hardware_concurrency: int = 8
    device_memory: int = 8
    extra_headers: dict[str, str] = field(
        default_factory=lambda: {"Accept-Language": ACCEPT_LANGUAGE}
    )

    def init_script(self) -> str:
        """JS run in every frame before any page script."""
        languages = ", ".join(f"'{lang}'" for lang in self.languages)
        return f"""
        (() => {{
          Object.defineProperty(navigator, 'webdriver', {{ get: () => undefined }});
          Object.defineProperty(navigator, 'platform', {{ get: () => '{self.platform}' }});
          Object.defineProperty(navigator, 'languages', {{ get: () => [{languages}] }});
          Object.defineProperty(navigator, 'hardwareConcurrency', {{
            get: () => {self.hardware_concurrency}
          }});
          Object.defineProperty(navigator, 'deviceMemory', {{ get: () => {self.device_memory} }});
          Object.defineProperty(navigator, 'plugins', {{ get: () => [1, 2, 3, 4, 5] }});
          window.chrome = window.chrome || {{ runtime: {{}} }};
        }})();
        """


LINUX_PROFILE = StealthProfile()
