from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from customers.models import Customer
from quotations.models import ComplexityCriterion, Quotation


class QuotationClassificationTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        call_command('seed_complexity_criteria', verbosity=0)
        User = get_user_model()
        cls.marketing = User.objects.create_user(username='marketing_user', password='pass', role='marketing')
        cls.manager = User.objects.create_user(username='manager_user', password='pass', role='manager')
        cls.customer = Customer.objects.create(name='PT Energi Nusantara')

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.marketing)

    def _create(self, **fields):
        body = {'customer': self.customer.id, 'title': 'Transformer move Cilegon - Pagar Alam'}
        body.update(fields)
        return self.client.post('/api/quotations/', body, format='json')

    def test_complex_quotation_goes_to_engineering_review(self):
        res = self._create(cargo_weight_kg='35000', cargo_length_m='12.5', terrain_type='mountain')
        self.assertEqual(res.status_code, 201, res.content)
        self.assertEqual(res.data['quotation_number'], f'QUO-{timezone.now().year}-0001')
        self.assertEqual(res.data['market_type'], 'complex')
        self.assertEqual(res.data['complexity_score'], 45)
        self.assertTrue(res.data['requires_engineering'])
        self.assertEqual(res.data['status'], 'engineering_review')
        self.assertEqual(res.data['engineering_status'], 'pending')
        self.assertEqual(res.data['formatted_score'], '45%')

        factors = {f['criteria_code']: f['triggered_value'] for f in res.data['complexity_factors']}
        self.assertEqual(factors, {
            'heavy_cargo': '35.000 kg',
            'over_length': '12.5 m',
            'difficult_terrain': 'Mountain',
        })

        quotation = Quotation.objects.get(pk=res.data['id'])
        self.assertEqual(quotation.created_by, self.marketing)

    def test_simple_quotation_is_draft(self):
        res = self._create(cargo_weight_kg='2000', is_new_route=True)
        self.assertEqual(res.status_code, 201, res.content)
        self.assertEqual(res.data['market_type'], 'simple')
        self.assertEqual(res.data['complexity_score'], 10)
        self.assertEqual(res.data['status'], 'draft')
        self.assertEqual(res.data['engineering_status'], 'not_required')

    def test_classification_fields_cannot_be_forced(self):
        res = self._create(market_type='complex', complexity_score=99, status='won')
        self.assertEqual(res.status_code, 201, res.content)
        self.assertEqual(res.data['market_type'], 'simple')
        self.assertEqual(res.data['complexity_score'], 0)
        self.assertEqual(res.data['status'], 'draft')

    def test_negative_specs_are_rejected_per_field(self):
        res = self._create(cargo_weight_kg='-10', cargo_width_m='-1')
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data['cargo_weight_kg'], ['Weight must be non-negative'])
        self.assertEqual(res.data['cargo_width_m'], ['Width must be non-negative'])
        self.assertFalse(Quotation.objects.exists())

    def test_numbering_continues_past_9999(self):
        year = timezone.now().year
        Quotation.objects.create(quotation_number=f'QUO-{year}-9999', customer=self.customer, title='Imported')
        first = self._create()
        second = self._create()
        self.assertEqual(first.data['quotation_number'], f'QUO-{year}-10000')
        self.assertEqual(second.data['quotation_number'], f'QUO-{year}-10001')

    def test_taken_number_is_retried(self):
        year = timezone.now().year
        taken = self._create().data['quotation_number']
        fresh = f'QUO-{year}-0077'
        with patch('quotations.services.classification.next_quotation_number', side_effect=[taken, fresh]):
            res = self._create(is_hazardous=True)
        self.assertEqual(res.status_code, 201, res.content)
        self.assertEqual(res.data['quotation_number'], fresh)
        self.assertEqual(res.data['market_type'], 'complex')
        self.assertEqual(Quotation.objects.count(), 2)

    def test_update_reclassifies(self):
        quotation_id = self._create(cargo_weight_kg='1000').data['id']

        res = self.client.patch(f'/api/quotations/{quotation_id}/', {'is_hazardous': True}, format='json')
        self.assertEqual(res.status_code, 200, res.content)
        self.assertEqual(res.data['market_type'], 'complex')
        self.assertEqual(res.data['complexity_score'], 20)
        self.assertEqual(res.data['status'], 'engineering_review')
        self.assertEqual(res.data['engineering_status'], 'pending')

        res = self.client.patch(f'/api/quotations/{quotation_id}/', {'is_hazardous': False}, format='json')
        self.assertEqual(res.data['market_type'], 'simple')
        self.assertEqual(res.data['status'], 'draft')
        self.assertEqual(res.data['engineering_status'], 'not_required')

    def test_update_of_other_fields_keeps_classification(self):
        quotation_id = self._create(is_hazardous=True).data['id']
        res = self.client.patch(f'/api/quotations/{quotation_id}/', {'title': 'Revised'}, format='json')
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data['title'], 'Revised')
        self.assertEqual(res.data['market_type'], 'complex')

    def test_negative_update_is_rejected(self):
        quotation_id = self._create().data['id']
        res = self.client.patch(f'/api/quotations/{quotation_id}/', {'duration_days': -2}, format='json')
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data['duration_days'], ['Duration must be non-negative'])

    def test_inactive_criteria_do_not_count(self):
        ComplexityCriterion.objects.filter(code='hazardous').update(is_active=False)
        res = self._create(is_hazardous=True)
        self.assertEqual(res.data['complexity_score'], 0)
        self.assertEqual(res.data['market_type'], 'simple')

    @override_settings(COMPLEXITY_THRESHOLD=50)
    def test_threshold_is_configurable(self):
        res = self._create(cargo_weight_kg='35000', cargo_length_m='12.5', terrain_type='mountain')
        self.assertEqual(res.data['complexity_score'], 45)
        self.assertEqual(res.data['market_type'], 'simple')
        self.assertEqual(res.data['status'], 'draft')

    def test_filter_and_counts(self):
        self._create(is_hazardous=True)
        self._create()
        self._create()

        res = self.client.get('/api/quotations/', {'market_type': 'complex'})
        self.assertEqual(len(res.data), 1)
        res = self.client.get('/api/quotations/', {'market_type': 'all'})
        self.assertEqual(len(res.data), 3)

        res = self.client.get('/api/quotations/market-counts/')
        self.assertEqual(res.data, {'simple': 2, 'complex': 1})

    def test_preview_does_not_save(self):
        res = self.client.post('/api/quotations/classify/', {
            'requires_special_permit': True,
            'duration_days': 45,
        }, format='json')
        self.assertEqual(res.status_code, 200, res.content)
        self.assertEqual(res.data['complexity_score'], 20)
        self.assertEqual(res.data['market_type'], 'complex')
        self.assertTrue(res.data['requires_engineering'])
        values = [f['triggered_value'] for f in res.data['complexity_factors']]
        self.assertEqual(values, ['45 days', 'Yes'])
        self.assertFalse(Quotation.objects.exists())

    def test_preview_rejects_negative_specs(self):
        res = self.client.post('/api/quotations/classify/', {'cargo_value': '-1'}, format='json')
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data['cargo_value'], ['Value must be non-negative'])


class ComplexityCriterionApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        call_command('seed_complexity_criteria', verbosity=0)
        User = get_user_model()
        cls.ops = User.objects.create_user(username='ops_user', password='pass', role='ops')
        cls.manager = User.objects.create_user(username='manager_user', password='pass', role='manager')

    def setUp(self):
        self.client = APIClient()

    def test_list_active_criteria(self):
        ComplexityCriterion.objects.filter(code='long_duration').update(is_active=False)
        self.client.force_authenticate(user=self.ops)
        res = self.client.get('/api/complexity-criteria/')
        self.assertEqual(res.status_code, 200)
        codes = [c['code'] for c in res.data]
        self.assertIn('heavy_cargo', codes)
        self.assertNotIn('long_duration', codes)

    def test_ops_cannot_edit(self):
        criterion = ComplexityCriterion.objects.get(code='heavy_cargo')
        self.client.force_authenticate(user=self.ops)
        res = self.client.patch(f'/api/complexity-criteria/{criterion.id}/', {'weight': 5}, format='json')
        self.assertEqual(res.status_code, 403)

    def test_manager_can_tune_weight(self):
        criterion = ComplexityCriterion.objects.get(code='heavy_cargo')
        self.client.force_authenticate(user=self.manager)
        res = self.client.patch(f'/api/complexity-criteria/{criterion.id}/', {'weight': 25}, format='json')
        self.assertEqual(res.status_code, 200, res.content)
        criterion.refresh_from_db()
        self.assertEqual(criterion.weight, 25)

    def test_invalid_rule_is_rejected(self):
        criterion = ComplexityCriterion.objects.get(code='heavy_cargo')
        self.client.force_authenticate(user=self.manager)
        res = self.client.patch(f'/api/complexity-criteria/{criterion.id}/', {
            'rule': {'field': 'cargo_weight_kg', 'operator': 'in', 'value': [1]},
        }, format='json')
        self.assertEqual(res.status_code, 400)
        self.assertIn('rule', res.data)
