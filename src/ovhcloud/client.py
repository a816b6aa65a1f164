"""OVHcloud API client with thin wrappers over the signed dispatcher."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlencode

from ovhcloud.credentials_store import credentials_from_env, load_profile
from ovhcloud.dispatcher import SignedDispatcher
from ovhcloud.types import ApiResponse, ApplicationCredentials, JsonDict

DEFAULT_SUBSIDIARY = "US"
DEFAULT_DURATION = "P1M"
DEFAULT_PRICING_MODE = "default"


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


def _compact(**fields: Any) -> JsonDict:
    return JsonDict({key: value for key, value in fields.items() if value is not None})


def _with_query(path: str, **params: Any) -> str:
    query = _compact(**params)
    if not query:
        return path
    return f"{path}?{urlencode(query, doseq=True)}"


class OvhClient(SignedDispatcher):
    """Asynchronous OVHcloud API client.

    Example:
        ```python
        async with OvhClient("app-key", "app-secret") as client:
            ok, credential = await client.login([{"method": "GET", "path": "/*"}])
            # after the user validates credential["validationUrl"]
            client.consumer = credential["consumerKey"]
            ok, me = await client.me()
        ```

    Every method returns the :class:`~ovhcloud.types.ApiResponse` produced by
    the dispatcher. None of them change the client's authentication mode.
    """

    @classmethod
    def from_credentials(
        cls,
        credentials: ApplicationCredentials,
        consumer_key: str | None = None,
        **kwargs: Any,
    ) -> "OvhClient":
        return cls(
            credentials.application_key,
            credentials.application_secret,
            consumer_key,
            **kwargs,
        )

    @classmethod
    def from_profile(
        cls,
        profile: str | None = None,
        *,
        home_dir: str | None = None,
        **kwargs: Any,
    ) -> "OvhClient":
        stored = load_profile(name=profile, home_dir=home_dir)
        kwargs.setdefault("endpoint", stored.endpoint)
        return cls.from_credentials(stored.credentials, stored.consumer_key, **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "OvhClient":
        credentials, consumer_key, endpoint = credentials_from_env()
        kwargs.setdefault("endpoint", endpoint)
        return cls.from_credentials(credentials, consumer_key, **kwargs)

    # /auth

    async def login(
        self,
        access_rules: list[dict[str, str]],
        redirection: str | None = None,
    ) -> ApiResponse:
        """Request a new consumer credential.

        The response carries ``consumerKey`` and ``validationUrl``; the key is
        usable once the user has validated it, and the caller assigns it.
        """
        return await self.post(
            "/auth/credential",
            _compact(accessRules=access_rules, redirection=redirection),
        )

    async def logout(self) -> ApiResponse:
        return await self.post("/auth/logout")

    async def current_credential(self) -> ApiResponse:
        return await self.get("/auth/currentCredential")

    async def auth_details(self) -> ApiResponse:
        return await self.get("/auth/details")

    async def server_time(self) -> ApiResponse:
        return await self.get("/auth/time")

    # /me

    async def me(self) -> ApiResponse:
        return await self.get("/me")

    async def list_api_applications(self) -> ApiResponse:
        return await self.get("/me/api/application")

    async def get_api_application(self, application_id: int | str) -> ApiResponse:
        return await self.get(f"/me/api/application/{_segment(application_id)}")

    async def delete_api_application(self, application_id: int | str) -> ApiResponse:
        return await self.delete(f"/me/api/application/{_segment(application_id)}")

    async def list_orders(self) -> ApiResponse:
        return await self.get("/me/order")

    async def get_order(self, order_id: int | str) -> ApiResponse:
        return await self.get(f"/me/order/{_segment(order_id)}")

    async def order_payment_methods(self, order_id: int | str) -> ApiResponse:
        return await self.get(f"/me/order/{_segment(order_id)}/paymentMethods")

    async def pay_order(self, order_id: int | str, payment_method_id: int | str) -> ApiResponse:
        return await self.post(
            f"/me/order/{_segment(order_id)}/pay",
            {"paymentMethod": {"id": payment_method_id}},
        )

    # /order/cart

    async def list_carts(self, description: str | None = None) -> ApiResponse:
        return await self.get(_with_query("/order/cart", description=description))

    async def create_cart(
        self,
        description: str | None = None,
        expire: str | None = None,
        ovh_subsidiary: str = DEFAULT_SUBSIDIARY,
    ) -> ApiResponse:
        return await self.post(
            "/order/cart",
            _compact(description=description, expire=expire, ovhSubsidiary=ovh_subsidiary),
        )

    async def get_cart(self, cart_id: str) -> ApiResponse:
        return await self.get(f"/order/cart/{_segment(cart_id)}")

    async def update_cart(
        self,
        cart_id: str,
        description: str | None = None,
        expire: str | None = None,
        ovh_subsidiary: str | None = None,
    ) -> ApiResponse:
        return await self.put(
            f"/order/cart/{_segment(cart_id)}",
            _compact(description=description, expire=expire, ovhSubsidiary=ovh_subsidiary),
        )

    async def delete_cart(self, cart_id: str) -> ApiResponse:
        return await self.delete(f"/order/cart/{_segment(cart_id)}")

    async def assign_cart(self, cart_id: str) -> ApiResponse:
        return await self.post(f"/order/cart/{_segment(cart_id)}/assign")

    async def cart_baremetal_servers(self, cart_id: str) -> ApiResponse:
        return await self.get(f"/order/cart/{_segment(cart_id)}/baremetalServers")

    async def cart_baremetal_server_options(self, cart_id: str, plan_code: str) -> ApiResponse:
        return await self.get(
            _with_query(f"/order/cart/{_segment(cart_id)}/baremetalServers/options", planCode=plan_code),
        )

    async def add_baremetal_server(
        self,
        cart_id: str,
        plan_code: str,
        quantity: int = 1,
        duration: str = DEFAULT_DURATION,
        pricing_mode: str = DEFAULT_PRICING_MODE,
    ) -> ApiResponse:
        return await self.post(
            f"/order/cart/{_segment(cart_id)}/baremetalServers",
            {
                "planCode": plan_code,
                "quantity": quantity,
                "duration": duration,
                "pricingMode": pricing_mode,
            },
        )

    async def add_baremetal_server_option(
        self,
        cart_id: str,
        item_id: int,
        plan_code: str,
        quantity: int = 1,
        duration: str = DEFAULT_DURATION,
        pricing_mode: str = DEFAULT_PRICING_MODE,
    ) -> ApiResponse:
        return await self.post(
            f"/order/cart/{_segment(cart_id)}/baremetalServers/options",
            {
                "itemId": item_id,
                "planCode": plan_code,
                "quantity": quantity,
                "duration": duration,
                "pricingMode": pricing_mode,
            },
        )

    async def add_vrack(
        self,
        cart_id: str,
        quantity: int = 1,
        duration: str = DEFAULT_DURATION,
        pricing_mode: str = DEFAULT_PRICING_MODE,
    ) -> ApiResponse:
        return await self.post(
            f"/order/cart/{_segment(cart_id)}/vrack",
            {
                "planCode": "vrack",
                "quantity": quantity,
                "duration": duration,
                "pricingMode": pricing_mode,
            },
        )

    async def checkout(self, cart_id: str) -> ApiResponse:
        return await self.post(f"/order/cart/{_segment(cart_id)}/checkout")

    # /dedicated/server

    async def list_dedicated_servers(self) -> ApiResponse:
        return await self.get("/dedicated/server")

    async def server_availabilities(
        self,
        country: str | None = None,
        hardware: str | None = None,
    ) -> ApiResponse:
        return await self.get(
            _with_query("/dedicated/server/availabilities", country=country, hardware=hardware),
        )

    async def server_availabilities_raw(self) -> ApiResponse:
        return await self.get("/dedicated/server/availabilities/raw")

    async def datacenter_availabilities(
        self,
        datacenters: str | None = None,
        exclude_datacenters: bool | None = None,
        memory: str | None = None,
        server: str | None = None,
        storage: str | None = None,
        plan_code: str | None = None,
    ) -> ApiResponse:
        if isinstance(exclude_datacenters, bool):
            exclude_datacenters = str(exclude_datacenters).lower()
        return await self.get(
            _with_query(
                "/dedicated/server/datacenter/availabilities",
                datacenters=datacenters,
                excludeDatacenters=exclude_datacenters,
                memory=memory,
                server=server,
                storage=storage,
                planCode=plan_code,
            ),
        )

    async def os_availabilities(self, hardware: str | None = None) -> ApiResponse:
        return await self.get(_with_query("/dedicated/server/osAvailabilities", hardware=hardware))

    async def virtual_network_interface(self, uuid: str) -> ApiResponse:
        return await self.get(f"/dedicated/server/virtualNetworkInterface/{_segment(uuid)}")

    async def get_dedicated_server(self, name: str) -> ApiResponse:
        return await self.get(f"/dedicated/server/{_segment(name)}")

    async def update_dedicated_server(
        self,
        name: str,
        boot_id: int | None = None,
        monitoring: bool | None = None,
        rescue_mail: str | None = None,
        root_device: str | None = None,
        state: str | None = None,
    ) -> ApiResponse:
        return await self.put(
            f"/dedicated/server/{_segment(name)}",
            _compact(
                bootId=boot_id,
                monitoring=monitoring,
                rescueMail=rescue_mail,
                rootDevice=root_device,
                state=state,
            ),
        )

    async def reboot_dedicated_server(self, name: str) -> ApiResponse:
        return await self.post(f"/dedicated/server/{_segment(name)}/reboot")

    # /vrack

    async def allowed_services(self, vrack: str, service_family: str | None = None) -> ApiResponse:
        return await self.get(
            _with_query(f"/vrack/{_segment(vrack)}/allowedServices", serviceFamily=service_family),
        )

    async def __aenter__(self) -> "OvhClient":
        return self
