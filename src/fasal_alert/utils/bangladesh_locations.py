"""
District headquarters coordinates for Bangladesh, keyed by division then district.
"""

DISTRICT_COORDINATES = {
    "Dhaka": {
        "Dhaka": (23.8103, 90.4125),
        "Gazipur": (23.9999, 90.4203),
        "Kishoreganj": (24.4260, 90.7760),
        "Manikganj": (23.8617, 90.0003),
        "Munshiganj": (23.5422, 90.5305),
        "Narayanganj": (23.6238, 90.4995),
        "Narsingdi": (23.9229, 90.7176),
        "Rajbari": (23.7574, 89.6444),
        "Shariatpur": (23.2423, 90.4348),
        "Tangail": (24.2513, 89.9167),
        "Faridpur": (23.6070, 89.8429),
        "Gopalganj": (23.0050, 89.8266),
        "Madaripur": (23.1641, 90.1897),
    },
    "Chittagong": {
        "Chittagong": (22.3569, 91.7832),
        "Cox's Bazar": (21.4272, 92.0058),
        "Comilla": (23.4607, 91.1809),
        "Feni": (23.0159, 91.3976),
        "Khagrachari": (23.1193, 91.9484),
        "Lakshmipur": (22.9447, 90.8282),
        "Noakhali": (22.8696, 91.0995),
        "Rangamati": (22.7324, 92.2985),
        "Bandarban": (22.1953, 92.2183),
        "Brahmanbaria": (23.9608, 91.1115),
        "Chandpur": (23.2332, 90.6712),
    },
    "Rajshahi": {
        "Rajshahi": (24.3745, 88.6042),
        "Bogra": (24.8465, 89.3770),
        "Joypurhat": (25.0968, 89.0227),
        "Naogaon": (24.7936, 88.9318),
        "Natore": (24.4206, 89.0000),
        "Chapainawabganj": (24.5965, 88.2775),
        "Pabna": (24.0064, 89.2372),
        "Sirajganj": (24.4533, 89.7006),
    },
    "Khulna": {
        "Khulna": (22.8456, 89.5403),
        "Bagerhat": (22.6602, 89.7895),
        "Chuadanga": (23.6401, 88.8410),
        "Jessore": (23.1634, 89.2182),
        "Jhenaidah": (23.5450, 89.1539),
        "Kushtia": (23.9013, 89.1205),
        "Magura": (23.4855, 89.4198),
        "Meherpur": (23.7622, 88.6318),
        "Narail": (23.1163, 89.5840),
        "Satkhira": (22.7185, 89.0705),
    },
    "Barisal": {
        "Barisal": (22.7010, 90.3535),
        "Barguna": (22.1596, 90.1121),
        "Bhola": (22.6859, 90.6482),
        "Jhalokati": (22.6406, 90.1987),
        "Patuakhali": (22.3596, 90.3298),
        "Pirojpur": (22.5841, 89.9720),
    },
    "Sylhet": {
        "Sylhet": (24.8949, 91.8687),
        "Habiganj": (24.3745, 91.4156),
        "Moulvibazar": (24.4820, 91.7774),
        "Sunamganj": (25.0658, 91.3950),
    },
    "Rangpur": {
        "Rangpur": (25.7439, 89.2752),
        "Dinajpur": (25.6217, 88.6354),
        "Gaibandha": (25.3288, 89.5430),
        "Kurigram": (25.8073, 89.6296),
        "Lalmonirhat": (25.9923, 89.2847),
        "Nilphamari": (25.9317, 88.8560),
        "Panchagarh": (26.3411, 88.5541),
        "Thakurgaon": (26.0336, 88.4616),
    },
    "Mymensingh": {
        "Mymensingh": (24.7471, 90.4203),
        "Jamalpur": (24.9375, 89.9377),
        "Netrokona": (24.8103, 90.7275),
        "Sherpur": (25.0204, 90.0152),
    },
}
