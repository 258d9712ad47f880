import unittest
import copy
import pickle
import numpy as np
from matstack import Mat4, MatStack, UnderflowError, MatStackError
from tests.matrices import affine


class TestStackNavigation(unittest.TestCase):
    def setUp(self):
        self.A = affine(("z", 30), translation=[1, 2, 3])
        self.B = affine(("x", 15), translation=[0, 1, 0], scale=2.0)
        self.s = MatStack()

    def test_new_stack_holds_identity(self):
        self.assertEqual(len(self.s), 1)
        self.assertEqual(self.s.depth, 1)
        np.testing.assert_array_equal(self.s.peek().matrix, np.eye(4))

    def test_push_multiplies_onto_top(self):
        self.s.push(self.A)
        self.s.push(self.B)
        self.assertEqual(len(self.s), 3)
        np.testing.assert_allclose(
            self.s.peek().matrix, self.A.matrix @ self.B.matrix, atol=1e-12)

    def test_push_accepts_arrays(self):
        self.s.push(self.A.to_array())
        self.s.push(self.B.matrix.tolist())
        np.testing.assert_allclose(
            self.s.peek().matrix, self.A.matrix @ self.B.matrix, atol=1e-12)

    def test_push_bad_shape_leaves_stack_alone(self):
        self.s.push(self.A)
        with self.assertRaises(ValueError):
            self.s.push(np.eye(3))
        self.assertEqual(len(self.s), 2)

    def test_push_does_not_alias_caller_array(self):
        arr = self.A.to_array()
        self.s.push(arr)
        arr[:] = 0.0
        self.assertTrue(self.s.peek().equals_exactly(self.A))

    def test_pop_returns_top(self):
        self.s.push(self.A)
        self.s.push(self.B)
        top = self.s.peek()
        popped = self.s.pop()
        self.assertTrue(popped.equals_exactly(top))
        self.assertEqual(len(self.s), 2)
        self.assertTrue(self.s.peek().equals_exactly(self.A))

    def test_push_pop_round_trip(self):
        self.s.push(self.A)
        before = self.s.peek()
        self.s.push(self.B)
        self.s.pop()
        self.assertTrue(self.s.peek().equals_exactly(before))
        self.assertEqual(len(self.s), 2)

    def test_pop_last_element_raises(self):
        with self.assertRaises(UnderflowError) as ctx:
            self.s.pop()
        self.assertIsInstance(ctx.exception, IndexError)
        self.assertIsInstance(ctx.exception, MatStackError)
        self.assertEqual(len(self.s), 1)
        np.testing.assert_array_equal(self.s.peek().matrix, np.eye(4))

    def test_peek_is_idempotent(self):
        self.s.push(self.A)
        first = self.s.peek()
        second = self.s.peek()
        self.assertTrue(first.equals_exactly(second))
        self.assertEqual(len(self.s), 2)

    def test_unwind(self):
        for _ in range(4):
            self.s.push(self.A)
        self.s.unwind(3)
        self.assertEqual(len(self.s), 2)
        self.assertTrue(self.s.peek().equals_exactly(self.A))
        self.s.unwind(1)
        self.assertEqual(len(self.s), 1)

    def test_unwind_zero_is_noop(self):
        self.s.push(self.A)
        self.s.unwind(0)
        self.assertEqual(len(self.s), 2)

    def test_unwind_too_far_raises_and_keeps_stack(self):
        self.s.push(self.A)
        self.s.push(self.B)
        snapshot = list(self.s)
        with self.assertRaises(UnderflowError):
            self.s.unwind(5)
        with self.assertRaises(UnderflowError):
            self.s.unwind(3)
        self.assertEqual(len(self.s), 3)
        for a, b in zip(snapshot, self.s):
            self.assertTrue(a.equals_exactly(b))

    def test_unwind_negative_raises(self):
        with self.assertRaises(ValueError):
            self.s.unwind(-1)

    def test_bottom_stays_identity(self):
        self.s.push(self.A)
        self.s.push(self.B)
        self.s.pop()
        self.s.push(self.B)
        self.s.rebase(1, self.B)
        self.s.unwind(2)
        self.assertEqual(len(self.s), 1)
        np.testing.assert_array_equal(self.s[0].matrix, np.eye(4))

    def test_indexing_and_iteration(self):
        self.s.push(self.A)
        self.s.push(self.B)
        self.assertTrue(self.s[1].equals_exactly(self.A))
        self.assertTrue(self.s[-1].equals_exactly(self.s.peek()))
        self.assertEqual(len(list(self.s)), 3)
        with self.assertRaises(IndexError):
            self.s[3]


class TestStackCopy(unittest.TestCase):
    def setUp(self):
        self.A = affine(translation=[1, 0, 0])
        self.B = affine(("z", 90))
        self.a = MatStack()
        self.a.push(self.A)
        self.a.push(self.B)

    def test_copy_has_same_values(self):
        b = self.a.copy()
        self.assertIsNot(b, self.a)
        self.assertEqual(len(b), len(self.a))
        self.assertTrue(b == self.a)

    def test_mutating_original_does_not_touch_copy(self):
        b = self.a.copy()
        expected = [m.to_array() for m in b]
        self.a.push(self.B)
        self.a.rebase(1, self.B)
        self.a.unwind(2)
        self.assertEqual(len(b), 3)
        for m, e in zip(b, expected):
            np.testing.assert_array_equal(m.matrix, e)

    def test_mutating_copy_does_not_touch_original(self):
        b = self.a.copy()
        b.pop()
        b.push(self.A)
        b.rebase(1, self.B)
        self.assertEqual(len(self.a), 3)
        np.testing.assert_allclose(
            self.a.peek().matrix, self.A.matrix @ self.B.matrix, atol=1e-12)

    def test_copy_module_and_pickle(self):
        for b in (copy.copy(self.a), copy.deepcopy(self.a), pickle.loads(pickle.dumps(self.a))):
            self.assertIsInstance(b, MatStack)
            self.assertTrue(b == self.a)
            b.pop()
            self.assertEqual(len(self.a), 3)

    def test_copy_keeps_tolerance(self):
        s = MatStack(tol=1e-6)
        self.assertEqual(s.copy().tol, 1e-6)

    def test_eq(self):
        other = MatStack()
        other.push(self.A)
        self.assertFalse(other == self.a)
        other.push(self.B)
        self.assertTrue(other == self.a)
        self.assertFalse(self.a == "stack")

    def test_repr(self):
        r = repr(self.a)
        self.assertIn("MatStack", r)
        self.assertIn("len=3", r)


class TestPushedContext(unittest.TestCase):
    def setUp(self):
        self.s = MatStack()
        self.T = affine(translation=[0, 0, 1])

    def test_pushed_restores_depth(self):
        with self.s.pushed(self.T) as top:
            self.assertEqual(len(self.s), 2)
            self.assertTrue(top.equals_exactly(self.T))
            with self.s.pushed(self.T) as inner:
                np.testing.assert_allclose(inner.matrix[:3, 3], [0, 0, 2])
        self.assertEqual(len(self.s), 1)

    def test_pushed_unwinds_extra_pushes(self):
        with self.s.pushed(self.T):
            self.s.push(self.T)
            self.s.push(self.T)
        self.assertEqual(len(self.s), 1)

    def test_pushed_unwinds_on_error(self):
        with self.assertRaises(RuntimeError):
            with self.s.pushed(self.T):
                raise RuntimeError("boom")
        self.assertEqual(len(self.s), 1)

    def test_pushed_popping_below_entry_depth_raises(self):
        self.s.push(self.T)
        with self.assertRaises(UnderflowError):
            with self.s.pushed(self.T):
                self.s.unwind(2)
        self.assertEqual(len(self.s), 1)

    def test_pushed_keeps_body_error_when_unbalanced(self):
        self.s.push(self.T)
        with self.assertRaises(RuntimeError):
            with self.s.pushed(self.T):
                self.s.unwind(2)
                raise RuntimeError("boom")

    def test_scene_traversal(self):
        # root -> (a -> a1), b
        tree = {
            "root": (affine(translation=[1, 0, 0]), ["a", "b"]),
            "a": (affine(translation=[0, 1, 0]), ["a1"]),
            "a1": (affine(scale=2.0), []),
            "b": (affine(translation=[0, 0, 5]), []),
        }
        world = {}

        def visit(name):
            local, children = tree[name]
            with self.s.pushed(local) as top:
                world[name] = top
                for child in children:
                    visit(child)

        visit("root")
        self.assertEqual(len(self.s), 1)
        np.testing.assert_allclose(world["a"].matrix[:3, 3], [1, 1, 0])
        np.testing.assert_allclose(world["a1"].matrix @ [1, 1, 1, 1], [3, 3, 2, 1])
        np.testing.assert_allclose(world["b"].matrix[:3, 3], [1, 0, 5])


if __name__ == "__main__":
    unittest.main()
