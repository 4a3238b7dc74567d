"""Static price list per vehicle class and service type"""

from .enums import ServiceType, VehicleClass
from .errors import ValidationError

PRICING: dict[VehicleClass, dict[ServiceType, int]] = {
    VehicleClass.SALOON: {
        ServiceType.BODY_WASH: 200,
        ServiceType.INTERIOR_EXTERIOR: 300,
        ServiceType.ENGINE: 250,
        ServiceType.VACUUM: 200,
        ServiceType.FULL_SERVICE: 1200,
    },
    VehicleClass.SUV: {
        ServiceType.BODY_WASH: 300,
        ServiceType.INTERIOR_EXTERIOR: 400,
        ServiceType.ENGINE: 250,
        ServiceType.VACUUM: 200,
        ServiceType.FULL_SERVICE: 1500,
    },
    VehicleClass.TRUCK: {
        ServiceType.BODY_WASH: 400,
        ServiceType.INTERIOR_EXTERIOR: 500,
        ServiceType.ENGINE: 300,
        ServiceType.VACUUM: 250,
        ServiceType.FULL_SERVICE: 1800,
    },
}

# Minutes
SERVICE_DURATIONS: dict[ServiceType, int] = {
    ServiceType.BODY_WASH: 30,
    ServiceType.INTERIOR_EXTERIOR: 45,
    ServiceType.ENGINE: 20,
    ServiceType.VACUUM: 15,
    ServiceType.FULL_SERVICE: 90,
}


def get_price(vehicle_class: str, service_type: str) -> int:
    """
    Look up the price for a vehicle class and service type.

    Raises:
        ValidationError: if either value is unknown
    """
    try:
        return PRICING[VehicleClass(vehicle_class)][ServiceType(service_type)]
    except (KeyError, ValueError) as e:
        raise ValidationError(
            f"No price defined for {vehicle_class!r} / {service_type!r}",
            vehicleClass=str(vehicle_class),
            serviceType=str(service_type),
        ) from e


def estimated_duration(service_type: str) -> int:
    try:
        return SERVICE_DURATIONS[ServiceType(service_type)]
    except ValueError:
        return 30


def pricing_table() -> dict[str, dict[str, int]]:
    """Plain-string view of the table for API responses"""
    return {
        vehicle.value: {service.value: price for service, price in prices.items()}
        for vehicle, prices in PRICING.items()
    }
