"""
================================================================================
Mobile Session (Appium)
================================================================================

Session adapter over an Appium UiAutomator2 driver for Android apps.

Locator mapping:
    stable id            -> AppiumBy.ID (resource-id, e.g. "org.wikipedia.alpha:id/search_src_text")
    accessibility label  -> AppiumBy.ACCESSIBILITY_ID (content-desc)
    structural path      -> ANDROID_UIAUTOMATOR for "new UiSelector()..." expressions,
                            XPATH for values starting with "/" or "(",
                            CLASS_NAME otherwise (e.g. "android.widget.TextView")

Readiness flag: the app under test is running in the foreground.

Selenium/Appium exceptions are translated at this boundary: absence becomes
NoSuchElementError, a stale element reports itself as not displayed and a
terminated session becomes SessionError.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from appium import webdriver
from appium.options.android import UiAutomator2Options
from appium.webdriver.applicationstate import ApplicationState
from appium.webdriver.common.appiumby import AppiumBy
from appium.webdriver.extensions.android.nativekey import AndroidKey
from loguru import logger
from selenium.common.exceptions import (
    InvalidSessionIdException,
    NoSuchElementException,
    StaleElementReferenceException,
    WebDriverException,
)

from wikisuites.common.config_loader import ConfigLoader

from .exceptions import NoSuchElementError, SessionError, UiAutomationError
from .locators import LocatorKind, LocatorStrategy


_SESSION_LOST_MARKERS = (
    "session is either terminated or not started",
    "A session is either terminated",
    "invalid session id",
)


def _is_session_lost(error: WebDriverException) -> bool:
    if isinstance(error, InvalidSessionIdException):
        return True
    message = str(error)
    return any(marker in message for marker in _SESSION_LOST_MARKERS)


@contextmanager
def _translate(action: str) -> Iterator[None]:
    try:
        yield
    except WebDriverException as e:
        if _is_session_lost(e):
            raise SessionError(f"Appium session lost during {action}: {e.msg}") from e
        raise UiAutomationError(f"{action} failed: {e.msg or e}") from e


def to_by(locator: LocatorStrategy) -> Tuple[str, str]:
    """Translate a LocatorStrategy into an Appium (by, value) pair."""
    if locator.kind is LocatorKind.STABLE_ID:
        return AppiumBy.ID, locator.value
    if locator.kind is LocatorKind.ACCESSIBILITY_LABEL:
        return AppiumBy.ACCESSIBILITY_ID, locator.value
    if locator.value.startswith("new Ui"):
        return AppiumBy.ANDROID_UIAUTOMATOR, locator.value
    if locator.value.startswith(("/", "(")):
        return AppiumBy.XPATH, locator.value
    return AppiumBy.CLASS_NAME, locator.value


class MobileHandle:
    """ElementHandle over an Appium WebElement."""

    def __init__(self, element: Any, driver: Any):
        self._element = element
        self._driver = driver

    def click(self) -> None:
        with _translate("tap"):
            self._element.click()

    def send_keys(self, text: str) -> None:
        with _translate("send_keys"):
            self._element.send_keys(text)

    def press(self, key: str) -> None:
        code = getattr(AndroidKey, key.upper(), None)
        if code is None:
            raise ValueError(f"Unknown Android key: {key}")
        with _translate(f"press {key}"):
            self._driver.press_keycode(code)

    def clear(self) -> None:
        with _translate("clear"):
            self._element.clear()

    def get_text(self) -> str:
        with _translate("get_text"):
            return (self._element.text or "").strip()

    def get_attribute(self, name: str) -> Any:
        with _translate(f"get_attribute {name}"):
            return self._element.get_attribute(name)

    def is_displayed(self) -> bool:
        try:
            return self._element.is_displayed()
        except StaleElementReferenceException:
            return False
        except WebDriverException as e:
            if _is_session_lost(e):
                raise SessionError(f"Appium session lost: {e.msg}") from e
            return False

    def is_enabled(self) -> bool:
        try:
            return self._element.is_enabled()
        except StaleElementReferenceException:
            return False
        except WebDriverException as e:
            if _is_session_lost(e):
                raise SessionError(f"Appium session lost: {e.msg}") from e
            return False

    def scroll_into_view(self, max_swipes: int = 3) -> None:
        """Swipe the screen up until the element is on screen."""
        for _ in range(max_swipes):
            if self.is_displayed():
                return
            with _translate("scroll"):
                size = self._driver.get_window_size()
                self._driver.execute_script("mobile: scrollGesture", {
                    "left": 0,
                    "top": int(size["height"] * 0.2),
                    "width": size["width"],
                    "height": int(size["height"] * 0.6),
                    "direction": "down",
                    "percent": 0.75,
                })

    def __repr__(self) -> str:
        return f"MobileHandle({getattr(self._element, 'id', '?')})"


class MobileSession:
    """
    Session over one Appium driver.

    Attributes:
        driver: Appium webdriver.Remote instance
        app_package: Package whose foreground state is the readiness flag
    """

    def __init__(self, driver: Any, app_package: str):
        self.driver = driver
        self.app_package = app_package
        self._closed = False

    # =========================================================================
    # Session protocol
    # =========================================================================

    def find_element(self, locator: LocatorStrategy) -> MobileHandle:
        by, value = to_by(locator)
        try:
            element = self.driver.find_element(by, value)
        except NoSuchElementException as e:
            raise NoSuchElementError(locator) from e
        except WebDriverException as e:
            if _is_session_lost(e):
                raise SessionError(f"Appium session lost: {e.msg}") from e
            raise UiAutomationError(f"lookup {locator} failed: {e.msg or e}") from e
        return MobileHandle(element, self.driver)

    def find_elements(self, locator: LocatorStrategy) -> List[MobileHandle]:
        by, value = to_by(locator)
        with _translate(f"lookup {locator}"):
            elements = self.driver.find_elements(by, value)
        return [MobileHandle(element, self.driver) for element in elements]

    def navigate_back(self) -> None:
        with _translate("back"):
            self.driver.back()

    def current_readiness_flag(self) -> bool:
        with _translate("app state"):
            state = self.driver.query_app_state(self.app_package)
        return state == ApplicationState.RUNNING_IN_FOREGROUND

    def execute_raw_command(self, script: str, *args: Any) -> Any:
        with _translate(script):
            return self.driver.execute_script(script, *args)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.driver.quit()
        except WebDriverException as e:
            raise SessionError(f"Failed to quit Appium session: {e.msg}") from e
        logger.debug("Mobile session closed")

    # =========================================================================
    # Device extras
    # =========================================================================

    @property
    def current_package(self) -> str:
        with _translate("current_package"):
            return self.driver.current_package

    @property
    def current_activity(self) -> str:
        with _translate("current_activity"):
            return self.driver.current_activity

    def screenshot(self) -> bytes:
        with _translate("screenshot"):
            return self.driver.get_screenshot_as_png()


class MobileSessionFactory:
    """Zero-arg factory producing a MobileSession on a new Appium driver."""

    def __init__(
        self,
        server_url: str = "http://127.0.0.1:4723",
        app_package: str = "org.wikipedia.alpha",
        app_activity: str = "org.wikipedia.main.MainActivity",
        udid: str = "emulator-5554",
        device_name: str = "Android Emulator",
        platform_version: str = "",
        avd: str = "",
        headless: bool = False,
        new_command_timeout: int = 60,
        auto_grant_permissions: bool = True,
        extra_capabilities: Optional[Dict[str, Any]] = None,
    ):
        self.server_url = server_url
        self.app_package = app_package
        self.app_activity = app_activity
        self.udid = udid
        self.device_name = device_name
        self.platform_version = platform_version
        self.avd = avd
        self.headless = headless
        self.new_command_timeout = new_command_timeout
        self.auto_grant_permissions = auto_grant_permissions
        self.extra_capabilities = extra_capabilities or {}

    @classmethod
    def from_config(cls, config: Optional[ConfigLoader] = None) -> "MobileSessionFactory":
        config = config or ConfigLoader()
        return cls(
            server_url=config.get("mobile.server_url", "http://127.0.0.1:4723"),
            app_package=config.get("mobile.app_package", "org.wikipedia.alpha"),
            app_activity=config.get("mobile.app_activity", "org.wikipedia.main.MainActivity"),
            udid=config.get("mobile.udid", "emulator-5554"),
            device_name=config.get("mobile.device_name", "Android Emulator"),
            platform_version=config.get("mobile.platform_version", ""),
            avd=config.get("mobile.avd", ""),
            headless=config.get("mobile.headless", False),
            new_command_timeout=config.get("mobile.new_command_timeout", 60),
            auto_grant_permissions=config.get("mobile.auto_grant_permissions", True),
            extra_capabilities=dict(config.get_section("mobile").get("capabilities") or {}),
        )

    def capabilities(self) -> Dict[str, Any]:
        caps: Dict[str, Any] = {
            "platformName": "Android",
            "appium:automationName": "UiAutomator2",
            "appium:appPackage": self.app_package,
            "appium:appActivity": self.app_activity,
            "appium:udid": self.udid,
            "appium:deviceName": self.device_name,
            "appium:noReset": False,
            "appium:fullReset": False,
            "appium:autoGrantPermissions": self.auto_grant_permissions,
            "appium:newCommandTimeout": self.new_command_timeout,
        }
        if self.platform_version:
            caps["appium:platformVersion"] = self.platform_version
        if self.avd:
            caps.update({
                "appium:avd": self.avd,
                "appium:avdLaunchTimeout": 120000,
                "appium:avdReadyTimeout": 120000,
                "appium:isHeadless": self.headless,
            })
        caps.update(self.extra_capabilities)
        return caps

    def __call__(self) -> MobileSession:
        options = UiAutomator2Options().load_capabilities(self.capabilities())
        logger.info(f"Connecting to Appium server: {self.server_url}")
        try:
            driver = webdriver.Remote(command_executor=self.server_url, options=options)
        except WebDriverException as e:
            raise SessionError(f"Failed to create Appium session: {e.msg}") from e
        logger.debug(f"Appium session started for {self.app_package} on {self.udid}")
        return MobileSession(driver, self.app_package)


__all__ = [
    "MobileHandle",
    "MobileSession",
    "MobileSessionFactory",
    "to_by",
]
