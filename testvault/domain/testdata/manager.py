"""Test Data Manager.

Generates synthetic users, products, orders and API payloads, keeps them in an
in-memory registry keyed by type, persists them as JSON, and erases them in
cleanup cycles.
"""
import inspect
import logging
import re
import string
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from faker import Faker

from testvault import config_loader
from testvault.adapters.cleanup.backends import FileCleanupBackend, LoggingCleanupBackend
from testvault.adapters.json_store.stores import JsonFileStore
from testvault.domain.crypto.cipher import SymmetricCipher
from testvault.domain.interfaces import CleanupBackend, DataStore, Registry
from testvault.domain.passwords import ValidationResult
from testvault.errors import CleanupHookError, UnknownScenarioError

logger = logging.getLogger(__name__)

DATA_CATEGORIES = ["users", "products", "orders", "api", "fixtures", "temp"]
CLEANUP_STRATEGIES = ("database", "api", "file")
AUTO_STRATEGY = "auto"
ALL_STRATEGY = "all"

CleanupHook = Callable[[], Union[Awaitable[Any], Any]]

_SCHEMA_TYPES = {
    "string": str,
    "number": (int, float),
    "boolean": bool,
    "object": (dict, list),
    "array": list,
}


def _iso(value: datetime) -> str:
    return value.isoformat()


class TestDataManager:
    __test__ = False

    def __init__(
        self,
        data_dir: str = "test-data",
        cleanup_strategy: str = AUTO_STRATEGY,
        environment: str = "test",
        cipher: Optional[SymmetricCipher] = None,
        store: Optional[DataStore] = None,
        backends: Optional[Dict[str, CleanupBackend]] = None,
        config: Optional[config_loader.DataConfig] = None,
        seed: Optional[int] = None,
        locale: str = "en_US"
    ):
        self.data_dir = data_dir
        self.cleanup_strategy = cleanup_strategy
        self.environment = environment
        self.cipher = cipher
        self.store = store or JsonFileStore(data_dir)

        self.faker = Faker(locale)
        if seed is not None:
            self.faker.seed_instance(seed)

        self.generated_data: Registry = {}
        self.cleanup_hooks: List[CleanupHook] = []

        self.store.ensure_categories(DATA_CATEGORIES)
        self.config = config or config_loader.load_config(data_dir, environment)

        self.backends: Dict[str, CleanupBackend] = {
            "database": LoggingCleanupBackend("database"),
            "api": LoggingCleanupBackend("api"),
            "file": FileCleanupBackend(self.store),
        }
        if backends:
            self.backends.update(backends)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _past(self) -> str:
        return _iso(self.faker.date_time_between(start_date="-1y", end_date="now", tzinfo=timezone.utc))

    def _recent(self) -> str:
        return _iso(self.faker.date_time_between(start_date="-2d", end_date="now", tzinfo=timezone.utc))

    def _address(self) -> Dict[str, str]:
        return {
            "street": self.faker.street_address(),
            "city": self.faker.city(),
            "state": self.faker.state(),
            "zip_code": self.faker.postcode(),
            "country": self.faker.country(),
        }

    def generate_user(
        self,
        role: str = "user",
        domain: Optional[str] = None,
        encrypted_password: bool = False,
        include_profile: bool = True,
        include_preferences: bool = False
    ) -> Dict[str, Any]:
        user = {
            "id": self.faker.uuid4(),
            "email": self.faker.email(domain=domain or self.faker.random_element(self.config.users.domains)),
            "username": self.faker.user_name(),
            "first_name": self.faker.first_name(),
            "last_name": self.faker.last_name(),
            "role": role,
            "is_active": True,
            "created_at": self._past(),
            "last_login": self._recent(),
        }

        password = self.faker.password(length=12)
        if encrypted_password:
            if self.cipher is None:
                raise ValueError("encrypted_password requires a cipher")
            user["password"] = self.cipher.encrypt(password)
        else:
            user["password"] = password
        # Plaintext copy for login steps in test flows
        user["plain_password"] = password

        if include_profile:
            user["profile"] = {
                "phone": self.faker.phone_number(),
                "address": self._address(),
                "date_of_birth": self.faker.date_of_birth(minimum_age=18, maximum_age=80).isoformat(),
                "avatar": self.faker.image_url(width=128, height=128),
            }

        if include_preferences:
            user["preferences"] = {
                "theme": self.faker.random_element(["light", "dark"]),
                "language": self.faker.random_element(["en", "es", "fr", "de"]),
                "notifications": {
                    "email": self.faker.pybool(),
                    "sms": self.faker.pybool(),
                    "push": self.faker.pybool(),
                },
            }

        self.store_generated_data("user", user)
        return user

    def generate_users(self, count: int = 10, **options) -> List[Dict[str, Any]]:
        return [self.generate_user(**options) for _ in range(count)]

    def generate_product(
        self,
        category: Optional[str] = None,
        price_range: Optional[Mapping[str, float]] = None,
        include_images: bool = True,
        include_reviews: bool = False
    ) -> Dict[str, Any]:
        defaults = self.config.products.price_range
        low = (price_range or {}).get("min", defaults.min)
        high = (price_range or {}).get("max", defaults.max)

        product = {
            "id": self.faker.uuid4(),
            "name": self.faker.catch_phrase(),
            "description": self.faker.paragraph(nb_sentences=2),
            "category": category or self.faker.random_element(self.config.products.categories),
            "price": round(self.faker.random.uniform(low, high), 2),
            "sku": self.faker.lexify("?" * 10, letters=string.ascii_uppercase + string.digits),
            "stock": self.faker.random_int(min=0, max=1000),
            "is_active": True,
            "created_at": self._past(),
            "updated_at": self._recent(),
        }

        if include_images:
            product["images"] = [self.faker.image_url(width=400, height=400) for _ in range(3)]

        if include_reviews:
            product["reviews"] = [
                {
                    "id": self.faker.uuid4(),
                    "user_id": self.faker.uuid4(),
                    "rating": self.faker.random_int(min=1, max=5),
                    "comment": self.faker.sentence(),
                    "created_at": self._past(),
                }
                for _ in range(self.faker.random_int(min=0, max=20))
            ]

        self.store_generated_data("product", product)
        return product

    def generate_order(
        self,
        user_id: Optional[str] = None,
        product_ids: Optional[Sequence[str]] = None,
        status: str = "pending",
        include_items: bool = True
    ) -> Dict[str, Any]:
        order = {
            "id": self.faker.uuid4(),
            "user_id": user_id or self.faker.uuid4(),
            "order_number": self.faker.lexify("?" * 8, letters=string.ascii_uppercase + string.digits),
            "status": status,
            "total_amount": 0.0,
            "currency": "USD",
            "created_at": self._past(),
            "updated_at": self._recent(),
            "shipping_address": self._address(),
        }

        if include_items:
            items = []
            for _ in range(self.faker.random_int(min=1, max=5)):
                quantity = self.faker.random_int(min=1, max=5)
                price = round(self.faker.random.uniform(10, 500), 2)
                items.append({
                    "id": self.faker.uuid4(),
                    "product_id": self.faker.random_element(list(product_ids)) if product_ids else self.faker.uuid4(),
                    "quantity": quantity,
                    "price": price,
                    "total": round(quantity * price, 2),
                })
            order["items"] = items
            order["total_amount"] = round(sum(item["total"] for item in items), 2)

        self.store_generated_data("order", order)
        return order

    def generate_api_data(
        self,
        endpoint: str,
        method: str = "POST",
        include_headers: bool = True,
        include_auth: bool = False
    ) -> Dict[str, Any]:
        headers: Dict[str, str] = {}
        if include_headers:
            headers = {
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": "Test-Automation/1.0",
            }
        if include_auth:
            headers["Authorization"] = f"Bearer {self.faker.pystr(min_chars=32, max_chars=32)}"

        api_data = {
            "endpoint": endpoint,
            "method": method,
            "headers": headers,
            "data": self.generate_data_for_endpoint(endpoint),
        }

        self.store_generated_data("api", api_data)
        return api_data

    def generate_data_for_endpoint(self, endpoint: str) -> Dict[str, Any]:
        if "/users" in endpoint:
            return self.generate_user(include_profile=True)
        if "/products" in endpoint:
            return self.generate_product(include_images=True)
        if "/orders" in endpoint:
            return self.generate_order(include_items=True)

        return {
            "id": self.faker.uuid4(),
            "name": self.faker.word(),
            "value": self.faker.sentence(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def generate_scenario_data(self, scenario: str) -> Dict[str, Any]:
        scenarios: Dict[str, Callable[[], Dict[str, Any]]] = {
            "user_registration": lambda: {
                "user": self.generate_user(include_profile=True, include_preferences=True),
                "expected_result": "success",
            },
            "product_purchase": lambda: {
                "user": self.generate_user(),
                "product": self.generate_product(),
                "order": self.generate_order(),
                "expected_result": "success",
            },
            "api_authentication": lambda: {
                "credentials": {
                    "username": self.faker.user_name(),
                    "password": self.faker.password(),
                },
                "expected_result": "success",
            },
            "data_validation": lambda: {
                "valid_data": self.generate_user(),
                "invalid_data": {"email": "invalid-email", "password": "123"},
                "expected_result": "validation_error",
            },
        }

        generator = scenarios.get(scenario)
        if generator is None:
            raise UnknownScenarioError(f"Unknown test scenario: {scenario}")
        return generator()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_data(self, data: Mapping[str, Any], schema: Mapping[str, Mapping[str, Any]]) -> ValidationResult:
        """Check `data` against a field schema.

        Supported rules per field: required, type, min_length, max_length, pattern.
        `type` may be a name ("string", "number", "boolean", "object", "array")
        or a Python type.
        """
        errors = []

        for field_name, rules in schema.items():
            value = data.get(field_name)
            present = value is not None and value != ""

            if rules.get("required") and not present:
                errors.append(f"{field_name} is required")

            if not present:
                continue

            expected = rules.get("type")
            if expected is not None:
                python_type = _SCHEMA_TYPES.get(expected, expected) if isinstance(expected, str) else expected
                if isinstance(python_type, str) or not isinstance(value, python_type):
                    errors.append(f"{field_name} must be of type {expected if isinstance(expected, str) else expected.__name__}")

            if rules.get("min_length") is not None and hasattr(value, "__len__") and len(value) < rules["min_length"]:
                errors.append(f"{field_name} must be at least {rules['min_length']} characters")

            if rules.get("max_length") is not None and hasattr(value, "__len__") and len(value) > rules["max_length"]:
                errors.append(f"{field_name} must be at most {rules['max_length']} characters")

            pattern = rules.get("pattern")
            if pattern is not None and not re.search(pattern, str(value)):
                errors.append(f"{field_name} does not match required pattern")

        return ValidationResult(is_valid=not errors, errors=errors)

    # ------------------------------------------------------------------
    # Persistence and registry
    # ------------------------------------------------------------------

    def load_test_data(self, name: str, category: str = "fixtures") -> Any:
        return self.store.read(category, name)

    def save_test_data(self, name: str, data: Any, category: str = "fixtures") -> str:
        return self.store.write(category, name, data)

    def store_generated_data(self, data_type: str, data: Dict[str, Any]) -> None:
        self.generated_data.setdefault(data_type, []).append(data)

    def get_generated_data(self, data_type: str) -> List[Dict[str, Any]]:
        return list(self.generated_data.get(data_type, []))

    def clear_generated_data(self, data_type: Optional[str] = None) -> None:
        if data_type:
            self.generated_data.pop(data_type, None)
        else:
            self.generated_data.clear()

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def register_cleanup_hook(self, hook: CleanupHook) -> None:
        self.cleanup_hooks.append(hook)

    async def execute_cleanup_hooks(self) -> None:
        """Run every hook once, in registration order. A failing hook never stops the rest."""
        for hook in self.cleanup_hooks:
            try:
                result = hook()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                error = CleanupHookError(getattr(hook, "__name__", repr(hook)), e)
                logger.error(str(error))

    def resolve_strategies(self, strategy: str = AUTO_STRATEGY) -> List[str]:
        """Expand `strategy` into backend names. Unknown names are logged and dropped."""
        resolved = self.cleanup_strategy if strategy == AUTO_STRATEGY else strategy

        if resolved == AUTO_STRATEGY:
            if not self.config.cleanup.auto:
                return []
            strategies = list(self.config.cleanup.strategies)
        elif resolved == ALL_STRATEGY:
            strategies = list(CLEANUP_STRATEGIES)
        else:
            strategies = [resolved]

        unknown = [s for s in strategies if s not in CLEANUP_STRATEGIES]
        if unknown:
            logger.warning(f"Unknown cleanup strategy: {', '.join(unknown)}; skipping")
        return [s for s in strategies if s in CLEANUP_STRATEGIES]

    async def cleanup(self, strategy: str = AUTO_STRATEGY) -> None:
        try:
            strategies = self.resolve_strategies(strategy)
            logger.info(f"Starting cleanup with strategies: {strategies or 'none'}")

            snapshot = {k: list(v) for k, v in self.generated_data.items()}
            for name in strategies:
                try:
                    await self.backends[name].cleanup(snapshot)
                except Exception as e:
                    logger.error(f"{name} cleanup failed: {e}")

            await self.execute_cleanup_hooks()
        finally:
            self.clear_generated_data()

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_data_statistics(self) -> Dict[str, Any]:
        by_type = {data_type: len(items) for data_type, items in self.generated_data.items()}
        return {
            "total_generated": sum(by_type.values()),
            "by_type": by_type,
            "environment": self.environment,
            "data_directory": self.data_dir,
        }
