"""
Management command to seed the default notification templates and settings
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from atelier.notifications.models import NotificationSettings, NotificationTemplate, ADMIN_TRIGGERS

SIGNATURE_SMS = "\n\n- {store_name}"
SIGNATURE_WHATSAPP = "\n\n*{store_name}*\n{store_phone}"

# trigger -> (name, description, sms content, whatsapp content)
DEFAULT_TEMPLATES = {
    'ORDER_PLACED': (
        'Commande reçue', 'Envoyé quand le client passe une commande',
        "Bonjour {customer_name}, votre commande {order_number} de {order_total} a été reçue. Merci pour votre confiance!",
        "Bonjour *{billing_first_name}*,\n\nVotre commande *{order_number}* a été reçue.\n\n"
        "*Articles:* {order_product_with_qty}\n*Total:* {order_total}\n*Adresse:* {billing_address}",
    ),
    'PAYMENT_RECEIVED': (
        'Paiement reçu', 'Envoyé quand le paiement est confirmé',
        "Paiement reçu pour votre commande {order_number} ({order_total}). Préparation en cours. Merci!",
        "Bonjour *{customer_name}*,\n\nVotre paiement de *{order_total}* pour la commande *{order_number}* a été confirmé.",
    ),
    'PAYMENT_FAILED': (
        'Paiement échoué', 'Envoyé quand le paiement en ligne échoue',
        "Le paiement de votre commande {order_number} n'a pas abouti. Contactez-nous au {store_phone}.",
        "Bonjour *{customer_name}*,\n\nLe paiement de la commande *{order_number}* n'a pas abouti. "
        "Vous pouvez réessayer ou nous écrire: {store_whatsapp}",
    ),
    'ORDER_PROCESSING': (
        'Commande en préparation', 'Envoyé quand la commande passe en préparation',
        "Votre commande {order_number} est en cours de préparation.",
        "Bonjour *{customer_name}*,\n\nVotre commande *{order_number}* est en cours de préparation.",
    ),
    'ORDER_SHIPPED': (
        'Commande expédiée', 'Envoyé quand la commande est expédiée',
        "Votre commande {order_number} est en livraison! Suivi: {tracking_number}.",
        "Bonjour *{customer_name}*,\n\nVotre commande *{order_number}* est en route!\n"
        "*Suivi:* {tracking_number}\n*Livraison prévue:* {delivery_date}",
    ),
    'ORDER_DELIVERED': (
        'Commande livrée', 'Envoyé quand la commande est livrée',
        "Votre commande {order_number} a été livrée. Merci et à bientôt!",
        "Bonjour *{customer_name}*,\n\nVotre commande *{order_number}* a été livrée. Merci pour votre confiance!",
    ),
    'ORDER_CANCELLED': (
        'Commande annulée', 'Envoyé quand la commande est annulée',
        "Votre commande {order_number} a été annulée. Contactez-nous au {store_phone} pour plus d'informations.",
        "Bonjour *{customer_name}*,\n\nVotre commande *{order_number}* a été annulée.",
    ),
    'ORDER_REFUNDED': (
        'Commande remboursée', 'Envoyé quand la commande est remboursée',
        "Votre commande {order_number} a été remboursée ({order_total}).",
        "Bonjour *{customer_name}*,\n\nLa commande *{order_number}* a été remboursée: *{order_total}*.",
    ),
    'CUSTOMER_NOTE': (
        'Note au client', 'Envoyé quand une note est ajoutée pour le client',
        "Commande {order_number}: {note_content}",
        "Bonjour *{customer_name}*,\n\nCommande *{order_number}*:\n{note_content}",
    ),
    'INVOICE_CREATED': (
        'Facture émise', 'Envoyé quand une facture est émise ou renvoyée',
        "Facture {invoice_number} de {invoice_total}. Reste à payer: {invoice_balance}. {invoice_url}",
        "Bonjour *{customer_name}*,\n\nVotre facture *{invoice_number}* de *{invoice_total}* est disponible.\n"
        "*Reste à payer:* {invoice_balance}\n{invoice_url}",
    ),
    'CUSTOM_ORDER_READY': (
        'Sur-mesure prêt', 'Envoyé quand une commande sur-mesure est prête',
        "Bonjour {customer_name}, votre commande {custom_order_number} est prête. Solde: {custom_order_balance}.",
        "Bonjour *{customer_name}*,\n\nVotre commande sur-mesure *{custom_order_number}* est prête!\n"
        "*Solde à régler:* {custom_order_balance}",
    ),
    'APPOINTMENT_CONFIRMED': (
        'Rendez-vous confirmé', 'Envoyé quand un rendez-vous est confirmé',
        "Votre rendez-vous {appointment_reference} du {appointment_date} à {appointment_time} est confirmé.",
        "Bonjour *{customer_name}*,\n\nVotre rendez-vous *{appointment_service}* du *{appointment_date}* "
        "à *{appointment_time}* est confirmé.",
    ),
    'APPOINTMENT_CANCELLED': (
        'Rendez-vous annulé', 'Envoyé quand un rendez-vous est annulé',
        "Votre rendez-vous {appointment_reference} du {appointment_date} a été annulé.",
        "Bonjour *{customer_name}*,\n\nVotre rendez-vous du *{appointment_date}* a été annulé.",
    ),
    'NEW_ACCOUNT': (
        'Bienvenue', 'Envoyé à la création du compte',
        "Bienvenue {customer_name}! Votre compte {store_name} est créé.",
        "Bienvenue *{customer_name}*!\n\nVotre compte est créé. Découvrez nos créations: {store_url}",
    ),
    'ADMIN_NEW_ORDER': (
        'Nouvelle commande (admin)', 'Alerte admin pour chaque nouvelle commande',
        "Nouvelle commande {order_number}: {order_total} - {customer_name} ({billing_phone})",
        "*Nouvelle commande* {order_number}\n*Client:* {customer_name} ({billing_phone})\n"
        "*Articles:* {order_product_with_qty}\n*Total:* {order_total}",
    ),
    'ADMIN_PAYMENT_RECEIVED': (
        'Paiement reçu (admin)', 'Alerte admin pour chaque paiement confirmé',
        "Paiement confirmé: {order_number} ({order_total}) - {customer_name}",
        "*Paiement confirmé*\n*Commande:* {order_number}\n*Montant:* {order_total}\n*Client:* {customer_name}",
    ),
    'ADMIN_APPOINTMENT_CANCELLED': (
        'Rendez-vous annulé (admin)', 'Alerte admin quand un client annule',
        "RDV annulé: {appointment_reference} du {appointment_date} {appointment_time} - {customer_name} ({customer_phone})",
        "*Rendez-vous annulé*\n{appointment_reference} - {appointment_date} {appointment_time}\n"
        "*Client:* {customer_name} ({customer_phone})",
    ),
    'LOW_STOCK': (
        'Stock faible (admin)', 'Alerte admin quand un produit passe sous son seuil',
        "Stock faible: {product_name} ({product_stock} restant)",
        "*Stock faible*\n{product_name}: {product_stock} restant (seuil {low_stock_threshold})",
    ),
    'OUT_OF_STOCK': (
        'Rupture de stock (admin)', 'Alerte admin quand un produit est épuisé',
        "Rupture de stock: {product_name}",
        "*Rupture de stock*\n{product_name} n'est plus disponible.",
    ),
}


class Command(BaseCommand):
    help = "Seeds the default SMS/WhatsApp notification templates and the notification settings"

    def add_arguments(self, parser):
        parser.add_argument(
            '--overwrite',
            action='store_true',
            help='Replace the content of templates that already exist',
        )

    def handle(self, *args, **options):
        overwrite = options['overwrite']
        created_count = 0
        updated_count = 0
        skipped_count = 0

        with transaction.atomic():
            NotificationSettings.load()

            for trigger, (name, description, sms_content, whatsapp_content) in DEFAULT_TEMPLATES.items():
                recipient_type = 'admin' if trigger in ADMIN_TRIGGERS else 'customer'
                for channel, content, signature in (
                    ('SMS', sms_content, SIGNATURE_SMS),
                    ('WHATSAPP', whatsapp_content, SIGNATURE_WHATSAPP),
                ):
                    defaults = {
                        'name': f"{name} - {'SMS' if channel == 'SMS' else 'WhatsApp'}",
                        'description': description,
                        'content': content + signature,
                        'recipient_type': recipient_type,
                    }
                    template = NotificationTemplate.objects.filter(trigger=trigger, channel=channel).first()
                    if template is None:
                        NotificationTemplate.objects.create(trigger=trigger, channel=channel, **defaults)
                        created_count += 1
                    elif overwrite:
                        for field, value in defaults.items():
                            setattr(template, field, value)
                        template.save()
                        updated_count += 1
                    else:
                        skipped_count += 1

        self.stdout.write(self.style.SUCCESS(
            f"Notification templates: {created_count} created, {updated_count} updated, {skipped_count} skipped"
        ))
