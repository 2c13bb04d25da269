from django.db import models


class Publishable(models.Model):
    """
    Draft/live bookkeeping for catalog entities.

    ``version`` is bumped on every persisted change of the draft;
    ``published_version`` holds the version that is live (0 = not live).
    """
    version = models.PositiveIntegerField(default=0)
    published_version = models.PositiveIntegerField(default=0)

    class Meta:
        abstract = True


class Product(Publishable):
    remote_id = models.CharField(max_length=64, unique=True)
    title = models.CharField(max_length=255)
    handle = models.CharField(max_length=255, blank=True, db_index=True)
    content = models.TextField(blank=True, null=True)
    vendor = models.CharField(max_length=255, blank=True, null=True)
    product_type = models.CharField(max_length=255, blank=True, null=True)
    tags = models.TextField(blank=True, null=True)
    featured_image = models.ForeignKey(
        'Image', null=True, blank=True, on_delete=models.SET_NULL, related_name='+',
    )
    remote_created_at = models.DateTimeField(null=True, blank=True)
    remote_updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-remote_created_at', '-id']

    def __str__(self):
        return f"{self.title} ({self.remote_id})"

    @property
    def tag_list(self) -> list[str]:
        return [tag.strip() for tag in (self.tags or '').split(',') if tag.strip()]

    def lowest_priced_variant(self):
        return self.variants.order_by('price').first()

    @property
    def price(self):
        variant = self.lowest_priced_variant()
        return variant.price if variant else None

    @property
    def compare_at_price(self):
        variant = self.lowest_priced_variant()
        return variant.compare_at_price if variant else None


class Image(Publishable):
    remote_id = models.CharField(max_length=64, unique=True)
    product = models.ForeignKey(
        Product, null=True, blank=True, on_delete=models.CASCADE, related_name='images',
    )
    title = models.CharField(max_length=255, blank=True, null=True)
    position = models.IntegerField(null=True, blank=True)
    src = models.URLField(max_length=2048)
    file = models.FileField(max_length=500, blank=True)
    remote_created_at = models.DateTimeField(null=True, blank=True)
    remote_updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['position', 'id']

    def __str__(self):
        return f"{self.title or self.src} ({self.remote_id})"


class Variant(Publishable):
    remote_id = models.CharField(max_length=64, unique=True)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    image = models.ForeignKey(
        Image, null=True, blank=True, on_delete=models.SET_NULL, related_name='variants',
    )
    title = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=12, decimal_places=2)
    compare_at_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    sku = models.CharField(max_length=255, blank=True, null=True)
    position = models.IntegerField(null=True, blank=True)
    option1 = models.CharField(max_length=255, blank=True, null=True)
    option2 = models.CharField(max_length=255, blank=True, null=True)
    option3 = models.CharField(max_length=255, blank=True, null=True)
    taxable = models.BooleanField(default=True)
    barcode = models.CharField(max_length=255, blank=True, null=True)
    inventory_quantity = models.IntegerField(null=True, blank=True)
    grams = models.IntegerField(null=True, blank=True)
    weight = models.FloatField(null=True, blank=True)
    weight_unit = models.CharField(max_length=16, blank=True, null=True)
    inventory_item_id = models.CharField(max_length=64, blank=True, null=True)
    requires_shipping = models.BooleanField(default=True)
    remote_created_at = models.DateTimeField(null=True, blank=True)
    remote_updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['position', 'id']

    def __str__(self):
        return f"{self.title} ({self.remote_id})"


class Collection(Publishable):
    remote_id = models.CharField(max_length=64, unique=True)
    title = models.CharField(max_length=255)
    handle = models.CharField(max_length=255, blank=True, db_index=True)
    content = models.TextField(blank=True, null=True)
    image = models.ForeignKey(
        Image, null=True, blank=True, on_delete=models.SET_NULL, related_name='+',
    )
    products = models.ManyToManyField(
        Product, through='CollectionMembership', related_name='collections',
    )
    remote_created_at = models.DateTimeField(null=True, blank=True)
    remote_updated_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return f"{self.title} ({self.remote_id})"


class CollectionMembership(models.Model):
    remote_id = models.CharField(max_length=64, unique=True)
    collection = models.ForeignKey(Collection, on_delete=models.CASCADE, related_name='memberships')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='memberships')
    sort_value = models.CharField(max_length=255, blank=True, null=True)
    position = models.IntegerField(null=True, blank=True)
    featured = models.BooleanField(default=False)
    # SyncRun id of the last pass that saw this row in the remote listing.
    generation = models.PositiveBigIntegerField(default=0, db_index=True)

    class Meta:
        ordering = ['position', 'id']
        constraints = [
            models.UniqueConstraint(fields=['collection', 'product'], name='unique_collection_product'),
        ]

    def __str__(self):
        return f"{self.collection_id} <-> {self.product_id} ({self.remote_id})"


class SyncRun(models.Model):
    RUNNING = 'running'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'
    STATUS_CHOICES = [
        (RUNNING, 'Running'),
        (SUCCEEDED, 'Succeeded'),
        (FAILED, 'Failed'),
    ]

    started_at = models.DateTimeField(auto_now_add=True)
    finished_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=RUNNING)
    stats = models.JSONField(default=dict, blank=True)
    error = models.TextField(blank=True)

    def __str__(self):
        return f"Sync run {self.pk} ({self.status})"
